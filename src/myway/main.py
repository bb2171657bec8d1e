"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (schema, Redis, engine).
Logging, middleware, CORS, error handlers and routers are all wired here.

The auth core never builds HTTP responses. It raises MyWayError
subclasses and the handler below turns them into {"detail": ...}.
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from myway import __version__
from myway.api import api_router
from myway.config import settings
from myway.errors import MyWayError, StorageError

logger = structlog.get_logger()


def configure_logging() -> None:
    """structlog setup: ISO timestamps, level filter, contextvars (request_id)."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "myway.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.create_schema_on_startup:
        from myway.db.engine import create_schema
        await create_schema()
        logger.info("myway.schema_ready")

    from myway.cache import close_redis, init_redis
    try:
        await init_redis()
        logger.info("myway.redis_connected")
    except Exception as e:
        # Redis only backs rate limiting; the app runs without it.
        logger.warning("myway.redis_unavailable", error=str(e))

    yield

    logger.info("myway.shutdown")
    await close_redis()

    from myway.db.engine import engine
    await engine.dispose()


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(MyWayError)
    async def myway_error_handler(request: Request, exc: MyWayError):
        if isinstance(exc, StorageError):
            logger.error(
                "storage.error",
                path=request.url.path,
                cause=repr(exc.__cause__) if exc.__cause__ else None,
            )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=headers,
        )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="MyWay LMS",
        description="Multi-tenant learning platform: auth, tenancy and course API",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from myway.middleware.rate_limit import RateLimitMiddleware
    from myway.middleware.request_id import RequestIdMiddleware
    from myway.middleware.security import SecurityHeadersMiddleware

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
        allow_headers=["Authorization", "Content-Type", "X-Org-ID", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: myway.main:app)
app = create_app()
