"""
FastAPI Main Application - Unified API entry point.

Run with: uvicorn mindport.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindport import __version__
from mindport.config import get_settings

from .deps import cleanup_services, init_services
from .middleware import ErrorHandlerMiddleware, LatencyMiddleware, TracingMiddleware
from .routes import domains, health, resources, search, shorthand, tools

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting MindPort API...")
    logger.info("  Database: %s", settings.db_path)
    logger.info(
        "  Isolation: %s (cross-domain %s)",
        settings.isolation_mode,
        "allowed" if settings.allow_cross_domain else "denied",
    )

    await init_services()
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down MindPort API...")
    await cleanup_services()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="MindPort API",
        description="Domain-scoped search and retrieval over resources and prompts",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Last added runs first: tracing wraps latency wraps error handling
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(TracingMiddleware)

    allowed_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        f"http://{settings.api_host}:{settings.api_port}",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_origin_regex=r"http://localhost:\d+" if settings.api_debug else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID", "X-Session-ID"],
        expose_headers=["X-Request-ID", "X-Session-ID"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, prefix="/api/search", tags=["Search"])
    app.include_router(tools.router, prefix="/api/tools", tags=["Tools"])
    app.include_router(domains.router, prefix="/api/domains", tags=["Domains"])
    app.include_router(resources.router, prefix="/api", tags=["Resources"])
    app.include_router(shorthand.router, prefix="/api/shorthand", tags=["Shorthand"])

    return app


# Create app instance
app = create_app()
