"""
Metrics API endpoints.

Per-channel investment, contribution and ROI for a year or a date range,
plus the period summary, assistant insights and year-over-year comparison.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from routers.dependencies import get_media_types, get_repository, to_http_error
from services.analytics import (
    aggregate_by_range,
    aggregate_by_year,
    build_insights,
    compare_with_previous_year,
    correlate_year,
)
from services.aggregator import summarize_period
from services.errors import MixEngineError
from services.media_types import MediaTypeTable
from services.repository import RecordRepository

router = APIRouter()


@router.get("/years")
async def get_years(repo: RecordRepository = Depends(get_repository)):
    """Get the calendar years present in the loaded data."""
    try:
        return {"years": repo.available_years()}
    except MixEngineError as e:
        raise to_http_error(e)


@router.get("/channels")
async def get_channels(
    repo: RecordRepository = Depends(get_repository),
    media_types: MediaTypeTable = Depends(get_media_types),
):
    """Get the channel list with each channel's media type."""
    try:
        channels = repo.channels
    except MixEngineError as e:
        raise to_http_error(e)

    return {
        "channels": [
            {"channel": c, "media_type": media_types.classify(c)}
            for c in channels
        ]
    }


@router.get("/date-range")
async def get_date_range(repo: RecordRepository = Depends(get_repository)):
    """Get the first and last week in the loaded data."""
    try:
        date_range = repo.date_range()
    except MixEngineError as e:
        raise to_http_error(e)

    if date_range is None:
        raise HTTPException(status_code=404, detail="No dated rows available")
    return {"start": date_range[0].isoformat(), "end": date_range[1].isoformat()}


@router.get("/year/{year}")
async def get_year(
    year: int,
    repo: RecordRepository = Depends(get_repository),
    media_types: MediaTypeTable = Depends(get_media_types),
):
    """
    Get per-channel metrics for a calendar year.

    Includes the month-by-month breakdown (Jan..Dec).
    """
    try:
        return aggregate_by_year(repo, year, media_types).to_dict()
    except MixEngineError as e:
        raise to_http_error(e)


@router.get("/range")
async def get_range(
    start: date,
    end: date,
    repo: RecordRepository = Depends(get_repository),
    media_types: MediaTypeTable = Depends(get_media_types),
):
    """
    Get per-channel metrics for an inclusive date range.

    Query params:
        start: First day (YYYY-MM-DD)
        end: Last day (YYYY-MM-DD)

    Months of different years fold together in the monthly breakdown.
    """
    try:
        return aggregate_by_range(repo, start, end, media_types).to_dict()
    except (MixEngineError, ValueError) as e:
        raise to_http_error(e)


@router.get("/year/{year}/summary")
async def get_year_summary(
    year: int,
    repo: RecordRepository = Depends(get_repository),
    media_types: MediaTypeTable = Depends(get_media_types),
):
    """Get headline totals and the online/offline split for a year."""
    try:
        return summarize_period(aggregate_by_year(repo, year, media_types))
    except MixEngineError as e:
        raise to_http_error(e)


@router.get("/year/{year}/insights")
async def get_year_insights(
    year: int,
    repo: RecordRepository = Depends(get_repository),
    media_types: MediaTypeTable = Depends(get_media_types),
):
    """Get plain-text insights for a year, used as assistant context."""
    try:
        period = aggregate_by_year(repo, year, media_types)
        synergies = correlate_year(repo, year)
    except MixEngineError as e:
        raise to_http_error(e)

    return {"year": year, "insights": build_insights(period, synergies)}


@router.get("/year/{year}/comparison")
async def get_year_comparison(
    year: int,
    repo: RecordRepository = Depends(get_repository),
    media_types: MediaTypeTable = Depends(get_media_types),
):
    """
    Compare each channel's investment with the previous year.

    Returns 404 when the previous year has no investment data.
    """
    try:
        return compare_with_previous_year(repo, year, media_types)
    except MixEngineError as e:
        raise to_http_error(e)
