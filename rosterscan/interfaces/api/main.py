"""
FastAPI Main Application - Unified API entry point.

Run with: uvicorn rosterscan.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rosterscan import __version__
from rosterscan.config import get_settings

from .middleware import ErrorResponseMiddleware, RequestContextMiddleware
from .routes import health, session

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]
DEBUG_ORIGIN_REGEX = r"http://(localhost|127\.0\.0\.1):\d+"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting RosterScan API...")
    logger.info("  Model: %s", settings.gemini_model)
    logger.info("  Credential: %s", settings.credential_status)
    logger.info("  Failure policy: %s", settings.failure_policy)
    if settings.credential_status == "missing":
        logger.warning("  GEMINI_API_KEY is not set; runs will fail until it is")

    yield

    logger.info("Shutting down RosterScan API...")


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="RosterScan API",
        description="AI extraction of performance-review rosters",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Starlette wraps middleware in reverse: the last added is the outermost.
    # Errors are turned into responses innermost, so the request context
    # layer sees (and logs) the final status and error code.
    app.add_middleware(ErrorResponseMiddleware)
    app.add_middleware(RequestContextMiddleware)

    # Debug mode also admits any local dev-server port
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_origin_regex=DEBUG_ORIGIN_REGEX if settings.api_debug else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Error-Code", "Content-Disposition"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(session.router, prefix="/api/session", tags=["Session"])

    return app


def serve() -> None:
    """Console entry point: configure logging and run uvicorn."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "rosterscan.interfaces.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )


# Create app instance
app = create_app()
