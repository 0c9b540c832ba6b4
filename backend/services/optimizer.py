"""
Greedy budget reallocation under diminishing returns.

Every channel starts at its floor (50% of its current budget). The freed
budget is then handed out in fixed increments, each going to the channel
whose next increment returns the most contribution per unit, until the
total budget is spent or every channel has reached its ceiling (300% of
its current budget).

This is a bounded heuristic, not a constrained solver: the result is not
guaranteed to be globally optimal.
"""

import copy
import math
from dataclasses import dataclass, field
from typing import Optional

from services.config import DEFAULT_OPTIMIZER_INCREMENT, DEFAULT_OPTIMIZER_TOLERANCE
from services.errors import InfeasibleBudgetError
from services.response import AnchoredRatioResponse, ResponseFunction

FLOOR_RATIO = 0.5    # no channel shrinks below 50% of its current budget
CEILING_RATIO = 3.0  # no channel grows above 300% of its current budget


@dataclass
class AllocationState:
    """
    Working allocation for one channel.

    current_budget and current_roi are the fixed baseline. new_budget starts
    at current_budget and changes only through set_budget(), which keeps
    expected_roi in sync with the response model.
    """
    channel: str
    current_budget: float
    current_roi: float
    new_budget: Optional[float] = None
    expected_roi: Optional[float] = None
    response: Optional[ResponseFunction] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if not (math.isfinite(self.current_budget) and math.isfinite(self.current_roi)):
            raise ValueError(f"{self.channel}: current_budget and current_roi must be finite")
        if self.current_budget < 0:
            raise ValueError(f"{self.channel}: current_budget must not be negative")
        if self.current_roi < 0:
            raise ValueError(f"{self.channel}: current_roi must not be negative")
        if self.response is None:
            self.response = AnchoredRatioResponse(self.current_budget, self.current_roi)
        if self.new_budget is None:
            self.new_budget = self.current_budget
        if self.expected_roi is None:
            self.expected_roi = self.response.expected_roi(self.new_budget)

    @property
    def floor(self) -> float:
        return self.current_budget * FLOOR_RATIO

    @property
    def ceiling(self) -> float:
        return self.current_budget * CEILING_RATIO

    @property
    def headroom(self) -> float:
        return max(0.0, self.ceiling - self.new_budget)

    @property
    def expected_contribution(self) -> float:
        return self.new_budget * self.expected_roi

    @property
    def current_contribution(self) -> float:
        return self.current_budget * self.current_roi

    def set_budget(self, new_budget: float) -> None:
        """Change the allocated budget and recompute expected ROI."""
        if not math.isfinite(new_budget) or new_budget < 0:
            raise ValueError(f"{self.channel}: budget must be a finite, non-negative number")
        self.new_budget = new_budget
        self.expected_roi = self.response.expected_roi(new_budget)

    def marginal_return(self, increment: float) -> float:
        """Extra contribution per unit for adding `increment` to the budget."""
        if increment <= 0:
            return 0
        before = self.response.expected_contribution(self.new_budget)
        after = self.response.expected_contribution(self.new_budget + increment)
        return (after - before) / increment

    def to_dict(self) -> dict:
        return {
            "channel": self.channel,
            "current_budget": self.current_budget,
            "current_roi": self.current_roi,
            "new_budget": self.new_budget,
            "expected_roi": self.expected_roi,
            "expected_contribution": self.expected_contribution,
            "change": self.new_budget - self.current_budget,
            "change_pct": (
                (self.new_budget - self.current_budget) / self.current_budget * 100
                if self.current_budget > 0 else 0
            ),
        }


def minimum_budget(states: list[AllocationState]) -> float:
    """Sum of channel floors: the smallest total budget that can be optimized."""
    return sum(s.floor for s in states)


def maximum_budget(states: list[AllocationState]) -> float:
    """Sum of channel ceilings: the most budget the optimizer can place."""
    return sum(s.ceiling for s in states)


def optimize(
    states: list[AllocationState],
    total_budget: float,
    increment: float = DEFAULT_OPTIMIZER_INCREMENT,
    tolerance: float = DEFAULT_OPTIMIZER_TOLERANCE,
) -> list[AllocationState]:
    """
    Reallocate total_budget across channels.

    The input states are not modified; optimized copies are returned in the
    same order. Raises InfeasibleBudgetError when total_budget is below the
    sum of floors. If total_budget exceeds the sum of ceilings the surplus is
    left unallocated.

    Ties on marginal return go to the channel listed first.
    """
    if increment <= 0:
        raise ValueError("increment must be positive")
    if not math.isfinite(total_budget):
        raise ValueError(f"total_budget must be a finite number, got {total_budget}")

    floor_total = minimum_budget(states)
    if total_budget < floor_total:
        raise InfeasibleBudgetError(total_budget, floor_total)

    result = [copy.copy(s) for s in states]
    for state in result:
        state.set_budget(state.floor)

    remaining = total_budget - floor_total
    eligible = [s for s in result if s.headroom > 0]
    steps = 0

    print(
        f"[Optimizer] Allocating {total_budget:,.0f} across {len(result)} channels "
        f"({remaining:,.0f} above floors)"
    )

    while remaining > tolerance and eligible:
        best = None
        best_step = 0.0
        best_return = float("-inf")
        for state in eligible:
            step = min(increment, remaining, state.headroom)
            marginal = state.marginal_return(step)
            if marginal > best_return:
                best, best_step, best_return = state, step, marginal

        best.set_budget(best.new_budget + best_step)
        remaining -= best_step
        steps += 1

        if best.headroom <= 0:
            eligible.remove(best)

    for state in result:
        state.set_budget(state.new_budget)

    if remaining > tolerance:
        print(f"[Optimizer] Every channel reached its ceiling; {remaining:,.0f} left unallocated")
    print(f"[Optimizer] Done after {steps} increments")

    return result


def simulate(states: list[AllocationState], overrides: dict[str, float]) -> list[AllocationState]:
    """
    Apply user budget overrides to copies of the states.

    Channels not named in overrides keep their new_budget. Unknown channel
    names raise KeyError.
    """
    known = {s.channel for s in states}
    unknown = [name for name in overrides if name not in known]
    if unknown:
        raise KeyError(", ".join(unknown))

    result = [copy.copy(s) for s in states]
    for state in result:
        if state.channel in overrides:
            state.set_budget(overrides[state.channel])
    return result


def summarize_allocation(states: list[AllocationState]) -> dict:
    """Current vs new totals for an allocation."""
    current_budget = sum(s.current_budget for s in states)
    new_budget = sum(s.new_budget for s in states)
    current_contribution = sum(s.current_contribution for s in states)
    new_contribution = sum(s.expected_contribution for s in states)

    return {
        "current_budget": current_budget,
        "new_budget": new_budget,
        "current_contribution": current_contribution,
        "expected_contribution": new_contribution,
        "current_roi": current_contribution / current_budget if current_budget > 0 else 0,
        "expected_roi": new_contribution / new_budget if new_budget > 0 else 0,
        "contribution_uplift": new_contribution - current_contribution,
    }
