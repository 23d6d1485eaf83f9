# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the A2Z marketplace API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import A2ZException, a2z_exception_handler
from app.routers import account, cron, health

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and shutdown."""
    logger.info(f"Starting A2Z API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if not settings.CRON_SECRET:
        logger.warning("CRON_SECRET is not set; the cron reset endpoint will refuse requests")

    yield

    logger.info("Shutting down A2Z API")


app = FastAPI(
    title="A2Z Marketplace API",
    description="""
## A2Z Marketplace Backend

Account tiers, listing limits and the weekly free account reset.

### Free Account Reset

Free accounts are wiped every 7 days, counted from the day they registered.
A scheduler calls `POST /api/v1/cron/free-account-reset` once a day at
midnight UTC with `Authorization: Bearer $CRON_SECRET`.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Account",
            "description": "The caller's reset countdown, tier limits and subscription",
        },
        {
            "name": "Cron",
            "description": "Scheduler-triggered jobs",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(A2ZException)
async def handle_a2z_exception(request: Request, exc: A2ZException):
    """Handle custom A2Z exceptions."""
    return await a2z_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

app.include_router(
    cron.router,
    prefix="/api/v1/cron",
    tags=["Cron"]
)

app.include_router(
    account.router,
    prefix="/api/v1/account",
    tags=["Account"]
)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint - returns API info."""
    return {
        "name": "A2Z Marketplace API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
