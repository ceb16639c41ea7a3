"""
Gyanu FastAPI Application Entry Point.

Run with: uvicorn gyanu.main:app --reload
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gyanu.api.middleware import RouteGuardMiddleware
from gyanu.api.routes import admin, conversations
from gyanu.auth.roles import RouteTable
from gyanu.auth.route_guard import RouteGuard
from gyanu.config import Settings, get_settings, sanitize_error
from gyanu.db.session import build_session_factory
from gyanu.errors import GyanuError, ValidationError
from gyanu.services.embeddings import EmbeddingService

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    embedding_service: EmbeddingService | None = None,
) -> FastAPI:
    """Build the application; tests pass their own database and embedder."""
    settings = settings or get_settings()
    session_factory = session_factory or build_session_factory(settings)
    embedding_service = embedding_service or EmbeddingService(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager for startup/shutdown."""
        yield
        # Let in-flight indexing finish before closing the HTTP client
        if app.state.background_tasks:
            await asyncio.gather(*app.state.background_tasks, return_exceptions=True)
        await app.state.embedding_service.aclose()

    app = FastAPI(
        title=settings.app_name,
        description="Access control and conversational memory for the Gyanu tutor",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.embedding_service = embedding_service
    app.state.background_tasks = set()

    # Page route guard (API routes authorize through their dependencies)
    app.add_middleware(
        RouteGuardMiddleware,
        guard=RouteGuard(RouteTable.from_settings(settings)),
        settings=settings,
        session_factory=session_factory,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GyanuError)
    async def gyanu_error_handler(request: Request, exc: GyanuError) -> JSONResponse:
        if exc.detail:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        error = ValidationError(first.get("msg", "Invalid request body"))
        return JSONResponse(status_code=error.status_code, content=error.to_body())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": sanitize_error(exc, generic_message="Something went wrong. Please try again.")},
        )

    # Include routers
    app.include_router(admin.router)
    app.include_router(conversations.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
