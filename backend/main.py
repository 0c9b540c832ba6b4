"""
Media Mix Insights API

FastAPI backend for the media mix dashboard.
Exposes channel performance, synergies and budget optimization over the
weekly investments/contributions export.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import sys
from pathlib import Path
from typing import Optional

# Add backend directory for imports
sys.path.insert(0, str(Path(__file__).parent))

from routers import data, metrics, optimizer, synergies
from services.config import Settings, load_settings
from services.errors import MixEngineError
from services.media_types import MediaTypeTable
from services.repository import RecordRepository

VERSION = "1.0.0"


def load_startup_data(repository: RecordRepository, settings: Settings) -> None:
    """Load the configured workbook, leaving the repository empty on failure."""
    if settings.data_file is None:
        print("[API] MMM_DATA_FILE not set - waiting for data to be loaded")
        return

    if not settings.data_file.exists():
        print(f"[API] Data file not found: {settings.data_file}")
        return

    try:
        repository.load_workbook(settings.data_file)
    except (MixEngineError, ValueError, OSError) as e:
        print(f"[API] Failed to load {settings.data_file}: {e}")


def create_app(settings: Optional[Settings] = None, repository: Optional[RecordRepository] = None) -> FastAPI:
    """Build the API with its own settings and record repository."""
    settings = settings or load_settings()
    repository = repository if repository is not None else RecordRepository()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        print("Starting Media Mix Insights API...")
        print(f"CORS allowed origins: {settings.cors_origins}")
        if not repository.is_loaded:
            load_startup_data(repository, settings)
        yield
        print("Shutting down...")

    app = FastAPI(
        title="Media Mix Insights API",
        description="Channel performance, synergies and budget optimization",
        version=VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.repository = repository
    app.state.media_types = MediaTypeTable(settings.media_types)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(data.router, prefix="/api/data", tags=["Data"])
    app.include_router(metrics.router, prefix="/api/metrics", tags=["Metrics"])
    app.include_router(synergies.router, prefix="/api/synergies", tags=["Synergies"])
    app.include_router(optimizer.router, prefix="/api/optimizer", tags=["Optimizer"])

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "healthy", "service": "Media Mix Insights API"}

    @app.get("/api/health")
    async def health_check():
        """Detailed health check."""
        return {
            "status": "healthy",
            "version": VERSION,
            "data_loaded": repository.is_loaded,
            "endpoints": [
                "/api/data",
                "/api/metrics",
                "/api/synergies",
                "/api/optimizer",
            ]
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
