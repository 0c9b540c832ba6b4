"""
Budget optimizer API endpoints.

Runs the greedy reallocation, applies manual budget overrides and serves
per-channel response curves. Allocation state lives with the caller: each
request carries the channels it works on and gets fresh copies back.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from routers.dependencies import get_media_types, get_repository, get_settings, to_http_error
from services.analytics import allocation_baseline, response_curve
from services.config import Settings
from services.errors import MixEngineError
from services.media_types import MediaTypeTable
from services.optimizer import (
    AllocationState,
    maximum_budget,
    minimum_budget,
    optimize,
    simulate,
    summarize_allocation,
)
from services.repository import RecordRepository
from services.response import DEFAULT_CURVE_SAMPLES

router = APIRouter()


FiniteFloat = Annotated[float, Field(allow_inf_nan=False)]


class ChannelBudget(BaseModel):
    """A channel's baseline budget and ROI, optionally with a working budget."""
    channel: str
    current_budget: FiniteFloat
    current_roi: FiniteFloat
    new_budget: Optional[FiniteFloat] = None


class OptimizeRequest(BaseModel):
    """Request body for an optimization run."""
    channels: list[ChannelBudget]
    total_budget: FiniteFloat


class SimulateRequest(BaseModel):
    """Request body for applying manual budget overrides."""
    channels: list[ChannelBudget]
    overrides: dict[str, FiniteFloat]


def _to_states(channels: list[ChannelBudget]) -> list[AllocationState]:
    states = []
    for c in channels:
        state = AllocationState(channel=c.channel, current_budget=c.current_budget, current_roi=c.current_roi)
        if c.new_budget is not None:
            state.set_budget(c.new_budget)
        states.append(state)
    return states


def _allocation_response(states: list[AllocationState]) -> dict:
    return {
        "channels": [s.to_dict() for s in states],
        "summary": summarize_allocation(states),
    }


@router.post("/run")
async def run_optimization(request: OptimizeRequest, settings: Settings = Depends(get_settings)):
    """
    Reallocate a fixed total budget across channels.

    Each channel stays between 50% and 300% of its current budget.
    Returns 400 when total_budget cannot cover every channel's 50% floor.
    """
    try:
        states = _to_states(request.channels)
        optimized = optimize(
            states,
            request.total_budget,
            increment=settings.optimizer_increment,
            tolerance=settings.optimizer_tolerance,
        )
    except (MixEngineError, ValueError) as e:
        raise to_http_error(e)

    result = _allocation_response(optimized)
    result["total_budget"] = request.total_budget
    result["unallocated"] = max(0.0, request.total_budget - result["summary"]["new_budget"])
    result["bounds"] = {"minimum": minimum_budget(states), "maximum": maximum_budget(states)}
    return result


@router.post("/simulate")
async def run_simulation(request: SimulateRequest):
    """Apply manual budget changes and recompute expected ROI per channel."""
    try:
        simulated = simulate(_to_states(request.channels), request.overrides)
    except (ValueError, KeyError) as e:
        raise to_http_error(e)

    return _allocation_response(simulated)


@router.get("/baseline/{year}")
async def get_baseline(
    year: int,
    repo: RecordRepository = Depends(get_repository),
    media_types: MediaTypeTable = Depends(get_media_types),
):
    """Get each channel's investment and ROI for a year as optimizer input."""
    try:
        states = allocation_baseline(repo, year, media_types)
    except MixEngineError as e:
        raise to_http_error(e)

    return {"year": year, **_allocation_response(states)}


@router.get("/curve/{channel}")
async def get_response_curve(
    channel: str,
    year: int,
    samples: int = Query(default=DEFAULT_CURVE_SAMPLES, ge=10, le=2000),
    repo: RecordRepository = Depends(get_repository),
    media_types: MediaTypeTable = Depends(get_media_types),
):
    """
    Get a channel's response curve and optimal investment zone for a year.

    The curve spans 0 to 300% of the channel's investment that year.
    """
    try:
        return response_curve(repo, channel, year, samples, media_types)
    except (MixEngineError, KeyError) as e:
        raise to_http_error(e)
