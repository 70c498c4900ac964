"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects every events route without relying
on each handler remembering it (handlers that need the identity depend on
get_current_user again; FastAPI caches it per request). Health and auth
routers are open; /auth/profile declares its own dependency.
"""

from fastapi import APIRouter, Depends

from plannora.api.auth import router as auth_router
from plannora.api.events import router as events_router
from plannora.api.health import router as health_router
from plannora.auth.dependencies import get_current_user

_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid session cookie or bearer token
api_router.include_router(events_router, tags=["events"], dependencies=_auth)
