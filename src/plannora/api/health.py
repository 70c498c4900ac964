"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and the
database is reachable. It goes through the same single-flight
Database.connect() as requests, so a health probe can also be what
establishes the first connection.
"""

from fastapi import APIRouter
from sqlalchemy import text

from plannora import __version__
from plannora.db.engine import STORAGE_FAILURES, database
from plannora.errors import StorageError

router = APIRouter()


@router.get("/health")
async def health_check():
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        factory = await database.connect()
        async with factory() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (StorageError, *STORAGE_FAILURES) as e:
        checks["database"] = f"error: {type(e).__name__}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
