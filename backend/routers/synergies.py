"""
Synergy API endpoints.

Pearson correlation between channels' weekly contributions within a year.
"""

from fastapi import APIRouter, Depends, Query

from routers.dependencies import get_repository, to_http_error
from services.analytics import correlate_year
from services.correlation import correlation_matrix, strongest_synergies
from services.errors import MixEngineError
from services.repository import RecordRepository

router = APIRouter()


@router.get("/{year}")
async def get_synergies(year: int, repo: RecordRepository = Depends(get_repository)):
    """Get one correlation coefficient per unordered channel pair."""
    try:
        pairs = correlate_year(repo, year)
    except MixEngineError as e:
        raise to_http_error(e)

    return {"year": year, "pairs": [p.to_dict() for p in pairs]}


@router.get("/{year}/matrix")
async def get_synergy_matrix(year: int, repo: RecordRepository = Depends(get_repository)):
    """Get the full symmetric correlation matrix (diagonal = 1)."""
    try:
        pairs = correlate_year(repo, year)
        channels = repo.channels
    except MixEngineError as e:
        raise to_http_error(e)

    return {"year": year, "channels": channels, "matrix": correlation_matrix(pairs, channels)}


@router.get("/{year}/top")
async def get_top_synergies(
    year: int,
    limit: int = Query(default=5, ge=1, le=50),
    repo: RecordRepository = Depends(get_repository),
):
    """Get the strongest positive and negative channel pairs."""
    try:
        pairs = correlate_year(repo, year)
    except MixEngineError as e:
        raise to_http_error(e)

    return {
        "year": year,
        "positive": [p.to_dict() for p in strongest_synergies(pairs, limit, positive=True)],
        "negative": [p.to_dict() for p in strongest_synergies(pairs, limit, positive=False)],
    }
