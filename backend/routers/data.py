"""
Data API endpoints.

Report what is loaded and reload or clear the record repository.
"""

from fastapi import APIRouter, Depends, HTTPException

from routers.dependencies import get_repository, get_settings, to_http_error
from services.analytics import data_status
from services.config import Settings
from services.errors import MixEngineError
from services.repository import RecordRepository

router = APIRouter()


@router.get("/status")
async def get_status(repo: RecordRepository = Depends(get_repository)):
    """Get the loaded source, channels, years and date range."""
    return data_status(repo)


@router.post("/reload")
async def reload_data(
    repo: RecordRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """Reload the workbook configured by MMM_DATA_FILE."""
    if settings.data_file is None:
        raise HTTPException(status_code=400, detail="MMM_DATA_FILE is not configured")
    if not settings.data_file.exists():
        raise HTTPException(status_code=404, detail=f"Data file not found: {settings.data_file}")

    try:
        repo.load_workbook(settings.data_file)
    except MixEngineError as e:
        raise to_http_error(e)

    return {"success": True, "status": data_status(repo)}


@router.post("/clear")
async def clear_data(repo: RecordRepository = Depends(get_repository)):
    """Drop all loaded records."""
    repo.clear()
    return {"success": True, "status": data_status(repo)}
