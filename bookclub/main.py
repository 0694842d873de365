"""
Book Club API application.

create_app() wires the routers under /api/{version}, slowapi, CORS, a
request-timing log line and the error handlers:

    MembershipError  -> its own status, {"detail": message, "code": code}
    SQLAlchemyError  -> 500 {"code": "database_error"}, details only in logs
    anything else    -> 500 {"code": "internal_error"}

Run with: uvicorn bookclub.main:app
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from bookclub.config import get_settings
from bookclub.routers import (
    auth_router,
    clubs_router,
    events_router,
    memberships_router,
    ratings_router,
    users_router,
)
from bookclub.services.cache import close_redis_connection, get_cache_stats, get_redis_client
from bookclub.services.errors import MembershipError
from bookclub.services.rate_limiter import limiter, rate_limit_exceeded_handler

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ROUTERS = (
    auth_router,
    users_router,
    clubs_router,
    memberships_router,
    ratings_router,
    events_router,
)

DESCRIPTION = """
Backend for book clubs: browse and create clubs, join and leave them,
approve members, hand a club over to another member, rate clubs and
RSVP to meetings.

Authenticate with a bearer token from `/api/v1/auth/login`.
"""


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"{settings.app_name} starting ({settings.environment}, debug={settings.debug})")
    if settings.redis_enabled and get_redis_client() is None:
        logger.warning("REDIS_ENABLED is set but Redis is unreachable; serving without cache")

    yield

    close_redis_connection()
    logger.info(f"{settings.app_name} stopped")


# =============================================================================
# Error handlers
# =============================================================================


async def membership_error_handler(request: Request, exc: MembershipError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "A database error occurred. Please try again later.",
            "code": "database_error",
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc) if settings.debug else "An internal error occurred.",
            "code": "internal_error",
        },
    )


async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
    return response


# =============================================================================
# Factory
# =============================================================================


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description=DESCRIPTION,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(MembershipError, membership_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    api_prefix = f"/api/{settings.api_version}"
    for router in ROUTERS:
        app.include_router(router, prefix=api_prefix)

    @app.get("/health", tags=["Health"], summary="Liveness and dependency status")
    async def health() -> dict:
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.api_version,
            "environment": settings.environment,
            "cache": get_cache_stats(),
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
                "write_limit": settings.rate_limit_write,
            },
        }

    @app.get("/", tags=["Root"], include_in_schema=False)
    async def root() -> dict:
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.api_version,
            "docs": app.docs_url,
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("bookclub.main:app", host=settings.host, port=settings.port, reload=settings.debug)
