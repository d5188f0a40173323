"""FastAPI application — main entry point."""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from helpdesk.application.services.session_channel import SessionChannel
from helpdesk.config import get_settings
from helpdesk.core.exceptions import AppError, global_exception_handler
from helpdesk.core.logging import configure_logging
from helpdesk.core.middleware import setup_middleware
from helpdesk.domain.repositories.record_store import RecordStore
from helpdesk.infrastructure.record_store import build_record_store

# Import routers
from helpdesk.interfaces.api.auth import router as auth_router
from helpdesk.interfaces.api.problem_types import router as problem_types_router
from helpdesk.interfaces.api.tickets import router as tickets_router

logger = structlog.get_logger(__name__)


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    """Build the application around an injected record store (or the configured one)."""
    settings = get_settings()
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Helpdesk...", env=settings.ENVIRONMENT, backend=settings.STORE_BACKEND)
        app.state.store.initialize()
        yield
        logger.info("Helpdesk stopped")

    app = FastAPI(
        title="Helpdesk — Sistema de Chamados",
        description="API Backend — abertura, triagem e atendimento de chamados de suporte",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else build_record_store(settings)
    app.state.session_channel = SessionChannel()

    setup_middleware(app)

    app.add_exception_handler(AppError, global_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(problem_types_router)
    app.include_router(tickets_router)

    @app.get("/")
    def root():
        return {
            "name": "Helpdesk",
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    return app
