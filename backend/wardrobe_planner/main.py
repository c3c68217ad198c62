"""Wardrobe Planner — backend for the 3D wardrobe-planning tool.

Main FastAPI application with lifespan management, CORS, and global error handling.
"""

import logging
from contextlib import asynccontextmanager

import structlog
import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wardrobe_planner.config import get_settings
from wardrobe_planner.api.router import api_router
from wardrobe_planner.errors import (
    CatalogItemNotFoundError,
    DesignCodeCollisionError,
    DesignConflictError,
    DesignNotFoundError,
    EmailDeliveryError,
    EmailNotConfiguredError,
    InvalidDesignCodeError,
    StoreUnavailableError,
    UnknownCollectionError,
    WardrobePlannerError,
)
from wardrobe_planner.services.catalog import CatalogService
from wardrobe_planner.services.customer_store import CustomerStore
from wardrobe_planner.services.design_codes import DesignCodeGenerator, select_random_source
from wardrobe_planner.services.design_store import DesignStore
from wardrobe_planner.services.mailer import Mailer
from wardrobe_planner.services.rate_limiter import EmailRateLimiter

# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if get_settings().DEBUG else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO)
    ),
)

logger = structlog.get_logger()


def init_services(app: FastAPI, redis_client) -> None:
    """Build the collaborators every request handler reads from app.state."""
    settings = get_settings()
    app.state.redis = redis_client

    source = select_random_source()
    app.state.code_generator = DesignCodeGenerator(source, length=settings.DESIGN_CODE_LENGTH)
    logger.info("random_source_selected", source=source.name)

    app.state.design_store = DesignStore(redis_client, key_prefix=settings.KEY_PREFIX)
    app.state.customer_store = CustomerStore(redis_client, key_prefix=settings.KEY_PREFIX)
    app.state.catalog = CatalogService(
        redis_client,
        key_prefix=settings.KEY_PREFIX,
        base_wardrobe_item_number=settings.BASE_WARDROBE_ITEM_NUMBER,
    )
    app.state.mailer = Mailer(settings)
    app.state.email_rate_limiter = EmailRateLimiter.from_settings(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    settings = get_settings()

    # ── Startup ──
    logger.info("app_starting", debug=settings.DEBUG)

    try:
        redis_client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            encoding="utf-8",
        )
        await redis_client.ping()
        logger.info("redis_connected", url=settings.REDIS_URL)
    except Exception as e:
        logger.error("redis_connection_failed", error=str(e))
        # App can still start; store calls fail with 503
        redis_client = None

    init_services(app, redis_client)

    if not app.state.mailer.configured:
        logger.warning("email_not_configured")

    if settings.CATALOG_SEED_DIR and redis_client is not None:
        loaded = await app.state.catalog.seed_from_directory(settings.CATALOG_SEED_DIR)
        logger.info("catalog_seeded", directory=settings.CATALOG_SEED_DIR, collections=loaded)

    logger.info("app_started")

    yield

    # ── Shutdown ──
    logger.info("app_shutting_down")

    if redis_client:
        await redis_client.aclose()
        logger.info("redis_disconnected")

    logger.info("app_stopped")


# ── Create Application ──

app = FastAPI(
    title="Wardrobe Planner",
    description=(
        "Backend for the 3D wardrobe planner: design codes, "
        "save and resume by code, product catalog, and email sharing."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ── Middleware ──

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Global Exception Handlers ──

ERROR_STATUS = {
    InvalidDesignCodeError: 422,
    DesignNotFoundError: 404,
    UnknownCollectionError: 404,
    CatalogItemNotFoundError: 404,
    DesignCodeCollisionError: 503,
    DesignConflictError: 409,
    StoreUnavailableError: 503,
    EmailNotConfiguredError: 500,
    EmailDeliveryError: 502,
}


@app.exception_handler(WardrobePlannerError)
async def domain_error_handler(request: Request, exc: WardrobePlannerError):
    """Map domain exceptions to JSON error responses."""
    status_code = ERROR_STATUS.get(type(exc), 500)
    if status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__,
        )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all error handler for unhandled exceptions."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again.",
        },
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=422,
        content={"error": "validation_error", "message": str(exc)},
    )


# ── Routes ──

app.include_router(api_router, prefix="/api/v1")


# ── Root endpoint ──

@app.get("/")
async def root():
    """Root endpoint — API info."""
    return {
        "name": "Wardrobe Planner",
        "version": "1.0.0",
        "description": "Design codes, save/resume, catalog and email sharing for the wardrobe planner",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
