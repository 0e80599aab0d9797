"""FastAPI application for the wellness-pass web API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..db.engine import init_db
from ..services.wellness import AppContext, WellnessService
from .routers import clients, form, sync

logger = logging.getLogger(__name__)


def create_app(context: AppContext | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        context: Store, cache, connectivity and session to serve; defaults
            to the files in the default data directory
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler - runs on startup and shutdown."""
        app_context = context or AppContext.create()
        db_path = app_context.repository.store.db_path
        if not db_path.exists():
            await init_db(db_path)

        service = WellnessService(app_context)
        result = await service.start()
        if result is not None:
            logger.info("Startup sync applied %d offline change(s)", result.applied)
        if service.is_online:
            await service.load_clients()
        app.state.service = service
        logger.info(
            "wellness-pass API ready (%s)", "online" if service.is_online else "offline"
        )
        yield
        service.close()

    app = FastAPI(
        title="wellness-pass",
        description="Client intake for wellness coaches",
        version=__version__,
        lifespan=lifespan,
    )

    # Include routers
    app.include_router(form.router)
    app.include_router(clients.router)
    app.include_router(sync.router)

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
