"""
Shared FastAPI dependencies for the routers.
"""

from fastapi import HTTPException, Request

from services.config import Settings
from services.errors import (
    ChannelMismatchError,
    InfeasibleBudgetError,
    MissingDataError,
    MixEngineError,
    SourceFormatError,
)
from services.media_types import MediaTypeTable
from services.repository import RecordRepository


def get_repository(request: Request) -> RecordRepository:
    """The repository owned by the running app."""
    return request.app.state.repository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_media_types(request: Request) -> MediaTypeTable:
    return request.app.state.media_types


def to_http_error(error: Exception) -> HTTPException:
    """Map engine errors to HTTP status codes."""
    if isinstance(error, MissingDataError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (ChannelMismatchError, InfeasibleBudgetError, SourceFormatError, ValueError)):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, KeyError):
        return HTTPException(status_code=404, detail=f"Unknown channel: {error.args[0]}")
    return HTTPException(status_code=500, detail=str(error))
