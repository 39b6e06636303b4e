"""FastAPI server wrapping the scan scheduler."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from metamonitor import __version__
from metamonitor.api.status_routes import status_router
from metamonitor.config import settings
from metamonitor.health.scheduler import ScanScheduler
from metamonitor.targets.registry import TargetRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the registry and scheduler, run the timed loop for the app's lifetime."""
    registry = TargetRegistry.from_file(settings.targets_file)
    scheduler = ScanScheduler(registry, settings)
    app.state.scheduler = scheduler

    await scheduler.start()
    yield
    await scheduler.stop()


def create_app() -> FastAPI:
    app = FastAPI(title="metamonitor", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(status_router, prefix="/api")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
