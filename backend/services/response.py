"""
Diminishing-returns response models.

Two strategies model how a channel's contribution responds to its budget:

- PowerLawResponse: a global curve per channel, used to draw response
  curves and to locate each channel's optimal investment zone.
- AnchoredRatioResponse: an ROI curve anchored on the channel's current
  budget and ROI, used by the budget optimizer for marginal comparisons.

The two are intentionally not reconciled and can disagree at the same
budget level. Both give 0 contribution at 0 investment, increase with
investment, flatten as investment grows and never go negative.
"""

import warnings
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

import numpy as np
from scipy.optimize import OptimizeWarning, curve_fit

from services.aggregator import ChannelMetric
from services.records import WeeklyRecord

# Contribution is capped at this multiple of investment
CONTRIBUTION_CAP_MULTIPLE = 3.0

# Online channels respond slightly better at the same budget
ONLINE_SCALE = 1.1
OFFLINE_SCALE = 1.0

# Curvature used when weekly history is too thin to fit one
DEFAULT_CONCAVITY = 0.3
MIN_CONCAVITY = 0.05
MAX_CONCAVITY = 0.9

# Anchored ratio exponents: increases are penalized, decreases rewarded
RATIO_K_INCREASE = 0.2
RATIO_K_DECREASE = 0.1

# Optimal zone detection
OPTIMAL_ZONE_SHARE = 0.85      # zone starts where ROI reaches 85% of peak
ROI_DROP_THRESHOLD = 0.005     # zone ends when ROI falls >0.5% of peak per 1/200 of the budget range
DEFAULT_CURVE_SAMPLES = 200


class ResponseFunction:
    """Base interface: contribution as a function of investment."""

    def expected_contribution(self, investment: float) -> float:
        raise NotImplementedError

    def expected_roi(self, investment: float) -> float:
        if investment <= 0:
            return 0
        return self.expected_contribution(investment) / investment


class PowerLawResponse(ResponseFunction):
    """
    contribution(x) = scale * max_roi * x * (x / reference_budget) ** -concavity

    capped at CONTRIBUTION_CAP_MULTIPLE * x, and 0 for x <= 0.
    """

    def __init__(self, max_roi: float, concavity: float, reference_budget: float, scale: float = OFFLINE_SCALE):
        if reference_budget <= 0:
            raise ValueError("reference_budget must be positive")
        if not 0 <= concavity < 1:
            raise ValueError("concavity must be in [0, 1)")
        if max_roi < 0 or scale < 0:
            raise ValueError("max_roi and scale must not be negative")
        self.max_roi = max_roi
        self.concavity = concavity
        self.reference_budget = reference_budget
        self.scale = scale

    def expected_contribution(self, investment: float) -> float:
        if investment <= 0:
            return 0
        value = self.scale * self.max_roi * investment * (investment / self.reference_budget) ** -self.concavity
        return min(value, investment * CONTRIBUTION_CAP_MULTIPLE)

    def __repr__(self):
        return (
            f"PowerLawResponse(max_roi={self.max_roi:.3f}, concavity={self.concavity:.3f}, "
            f"reference_budget={self.reference_budget:.0f}, scale={self.scale})"
        )


class AnchoredRatioResponse(ResponseFunction):
    """
    expected_roi(b) = current_roi * (b / current_budget) ** -k

    with k = k_increase above the current budget and k_decrease below it.
    k_decrease <= k_increase keeps contribution concave across the anchor.
    """

    def __init__(
        self,
        current_budget: float,
        current_roi: float,
        k_increase: float = RATIO_K_INCREASE,
        k_decrease: float = RATIO_K_DECREASE,
    ):
        if current_budget < 0 or current_roi < 0:
            raise ValueError("current_budget and current_roi must not be negative")
        if not 0 <= k_decrease <= k_increase < 1:
            raise ValueError("exponents must satisfy 0 <= k_decrease <= k_increase < 1")
        self.current_budget = current_budget
        self.current_roi = current_roi
        self.k_increase = k_increase
        self.k_decrease = k_decrease

    def expected_roi(self, investment: float) -> float:
        # No anchor to scale from when the channel is currently unfunded
        if investment <= 0 or self.current_budget <= 0:
            return 0
        ratio = investment / self.current_budget
        k = self.k_increase if ratio > 1 else self.k_decrease
        return self.current_roi * ratio ** -k

    def expected_contribution(self, investment: float) -> float:
        return investment * self.expected_roi(investment)


# ============================================================================
# FITTING
# ============================================================================

def _log_power(log_x, log_a, exponent):
    return log_a + exponent * log_x


def fit_concavity(points: list[tuple[float, float]]) -> float:
    """
    Estimate curvature from weekly (investment, contribution) points.

    Fits contribution = a * investment ** b with curve_fit on the log scale,
    using strictly positive points only. Concavity is 1 - b, clamped to
    [MIN_CONCAVITY, MAX_CONCAVITY]. Falls back to DEFAULT_CONCAVITY without
    at least two distinct spend levels.
    """
    positive = np.array([(x, y) for x, y in points if x > 0 and y > 0], dtype=float)
    if len(positive) == 0 or len(np.unique(positive[:, 0])) < 2:
        return DEFAULT_CONCAVITY

    log_x = np.log(positive[:, 0])
    log_y = np.log(positive[:, 1])
    with warnings.catch_warnings():
        # Two spend levels fit exactly and leave no covariance estimate
        warnings.simplefilter("ignore", OptimizeWarning)
        try:
            (_, exponent), _ = curve_fit(_log_power, log_x, log_y, p0=(0.0, 1.0))
        except RuntimeError as e:
            print(f"[Response] Concavity fit failed, using default: {e}")
            return DEFAULT_CONCAVITY

    return float(max(MIN_CONCAVITY, min(MAX_CONCAVITY, 1 - exponent)))


def power_law_for(metric: ChannelMetric, points: Optional[list[tuple[float, float]]] = None) -> Optional[PowerLawResponse]:
    """
    Build a channel's power-law curve anchored on its period totals.

    Returns None for a channel with no investment in the period.
    """
    if metric.investment <= 0:
        return None

    scale = ONLINE_SCALE if metric.media_type == "Online" else OFFLINE_SCALE
    concavity = fit_concavity(points) if points else DEFAULT_CONCAVITY
    return PowerLawResponse(
        max_roi=metric.roi,
        concavity=concavity,
        reference_budget=metric.investment,
        scale=scale,
    )


def observed_points(
    investments: list[WeeklyRecord],
    contributions: list[WeeklyRecord],
    channel: str,
) -> list[tuple[float, float]]:
    """
    Weekly (investment, contribution) pairs for a channel, matched by date.

    Weeks where both values are 0 are skipped.
    """
    contributions_by_date: dict[date, float] = {r.date: r.value(channel) for r in contributions}

    points = []
    for record in investments:
        investment = record.value(channel)
        contribution = contributions_by_date.get(record.date, 0.0)
        if investment > 0 or contribution > 0:
            points.append((investment, contribution))
    return points


# ============================================================================
# CURVE SAMPLING AND OPTIMAL ZONE
# ============================================================================

@dataclass(frozen=True)
class CurvePoint:
    investment: float
    contribution: float
    roi: float


@dataclass(frozen=True)
class OptimalZone:
    """Investment interval where ROI sits on its plateau."""
    start: float
    end: float
    peak_roi: float
    peak_investment: float

    def to_dict(self) -> dict:
        return asdict(self)


def sample_curve(response: ResponseFunction, max_budget: float, samples: int = DEFAULT_CURVE_SAMPLES) -> list[CurvePoint]:
    """Evenly spaced points over [0, max_budget], starting at 0."""
    if samples < 1:
        raise ValueError("samples must be at least 1")
    if max_budget <= 0:
        return [CurvePoint(0, 0, 0)]

    step = max_budget / samples
    points = []
    for i in range(samples + 1):
        x = step * i
        points.append(CurvePoint(
            investment=x,
            contribution=response.expected_contribution(x),
            roi=response.expected_roi(x),
        ))
    return points


def optimal_range(response: ResponseFunction, max_budget: float, samples: int = DEFAULT_CURVE_SAMPLES) -> OptimalZone:
    """
    Locate the optimal investment zone on a response curve.

    The zone starts at the first sample whose ROI reaches OPTIMAL_ZONE_SHARE
    of the peak ROI. After the peak, it ends at the last sample before the
    slope of ROI falls below -ROI_DROP_THRESHOLD of the peak per
    1/DEFAULT_CURVE_SAMPLES of max_budget. The slope is measured per unit of
    investment, so the zone does not depend on the number of samples.
    """
    points = [p for p in sample_curve(response, max_budget, samples) if p.investment > 0]
    if not points:
        return OptimalZone(0, 0, 0, 0)

    peak_index = max(range(len(points)), key=lambda i: points[i].roi)
    peak = points[peak_index]
    if peak.roi <= 0:
        return OptimalZone(0, 0, 0, 0)

    start = next(p.investment for p in points if p.roi >= OPTIMAL_ZONE_SHARE * peak.roi)

    min_slope = -ROI_DROP_THRESHOLD * peak.roi / (max_budget / DEFAULT_CURVE_SAMPLES)
    end = points[-1].investment
    for i in range(peak_index + 1, len(points)):
        slope = (points[i].roi - points[i - 1].roi) / (points[i].investment - points[i - 1].investment)
        if slope < min_slope:
            end = points[i - 1].investment
            break

    return OptimalZone(start=start, end=end, peak_roi=peak.roi, peak_investment=peak.investment)
