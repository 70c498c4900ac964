"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (logging, optional Redis,
database disposal). Middleware, CORS, error handlers, and routers are
all registered here.

The database is NOT connected at startup: the first request (or health
probe) establishes it through Database.connect(), so a process whose
database is briefly unavailable still boots and recovers on its own.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from plannora import __version__
from plannora.api import api_router
from plannora.config import settings
from plannora.db.engine import database
from plannora.errors import AuthenticationError, PlannoraError
from plannora.logging_config import configure_logging
from plannora.redis_client import close_redis, init_redis

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "plannora.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    try:
        await init_redis()
        logger.info("plannora.redis_connected")
    except (RedisError, OSError) as e:
        # Redis is optional: only rate limiting depends on it
        logger.warning("plannora.redis_unavailable", error=str(e))

    if settings.auto_create_tables:
        await database.create_all()
        logger.info("plannora.tables_created")

    yield

    logger.info("plannora.shutdown")
    await close_redis()
    await database.dispose()


# ─── Error handlers ─────────────────────────────────────


async def plannora_error_handler(request: Request, exc: PlannoraError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed or missing request fields are a 400, with per-field details."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    first = errors[0]["msg"] if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"detail": first, "errors": errors})


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging(settings.log_level, settings.json_logs)

    app = FastAPI(
        title="Plannora API",
        description="Accounts, sessions and event planning records",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from plannora.middleware.rate_limit import RateLimitMiddleware
    from plannora.middleware.request_id import RequestIdMiddleware
    from plannora.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PlannoraError, plannora_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: plannora.main:app)
app = create_app()
