"""
Channel synergy analysis.

Computes the Pearson correlation between every pair of channels' weekly
contribution series. The coefficient is a heuristic signal of channels
performing well in the same weeks; no significance testing is applied.
"""

import math
import statistics
from dataclasses import asdict, dataclass
from typing import Optional

from services.records import WeeklyRecord


@dataclass(frozen=True)
class CorrelationPair:
    """Correlation between two distinct channels."""
    channel_a: str
    channel_b: str
    coefficient: float

    @property
    def key(self) -> frozenset:
        return frozenset((self.channel_a, self.channel_b))

    def to_dict(self) -> dict:
        return asdict(self)


def pearson(x: list[float], y: list[float]) -> float:
    """
    Pearson product-moment correlation of two equal-length series.

    A constant series has no defined correlation; it resolves to 0.
    """
    n = len(x)
    if n == 0:
        return 0

    mean_x = statistics.fmean(x)
    mean_y = statistics.fmean(y)

    covariance = 0.0
    var_x = 0.0
    var_y = 0.0
    for xi, yi in zip(x, y):
        dx = xi - mean_x
        dy = yi - mean_y
        covariance += dx * dy
        var_x += dx * dx
        var_y += dy * dy

    denominator = math.sqrt(var_x * var_y)
    if denominator == 0:
        return 0

    # Clamp float drift on perfectly (anti)correlated series
    return max(-1.0, min(1.0, covariance / denominator))


def contribution_series(records: list[WeeklyRecord], channels: list[str]) -> dict[str, list[float]]:
    """Weekly values per channel, aligned by record index."""
    return {channel: [r.value(channel) for r in records] for channel in channels}


def correlate(series: dict[str, list[float]]) -> list[CorrelationPair]:
    """
    Correlate every unordered pair of channels once.

    All series must have the same length (the caller aligns them by week).
    Self pairs are not emitted; see correlation_matrix for the full matrix.
    """
    channels = list(series)
    pairs = []
    for i in range(len(channels)):
        for j in range(i + 1, len(channels)):
            a, b = channels[i], channels[j]
            pairs.append(CorrelationPair(a, b, pearson(series[a], series[b])))
    return pairs


def lookup(pairs: list[CorrelationPair], channel_a: str, channel_b: str) -> Optional[float]:
    """Coefficient for an unordered channel pair (1 for a channel with itself)."""
    if channel_a == channel_b:
        return 1.0
    key = frozenset((channel_a, channel_b))
    return next((p.coefficient for p in pairs if p.key == key), None)


def correlation_matrix(pairs: list[CorrelationPair], channels: list[str]) -> dict[str, dict[str, float]]:
    """Rebuild the full symmetric matrix, unit diagonal, 0 for unknown pairs."""
    by_key = {p.key: p.coefficient for p in pairs}
    matrix = {}
    for a in channels:
        matrix[a] = {}
        for b in channels:
            matrix[a][b] = 1.0 if a == b else by_key.get(frozenset((a, b)), 0.0)
    return matrix


def strongest_synergies(pairs: list[CorrelationPair], limit: int = 5, positive: bool = True) -> list[CorrelationPair]:
    """
    Strongest positive (or negative) pairs, strongest first.

    Pairs with a coefficient of exactly 0 are neither.
    """
    if positive:
        selected = [p for p in pairs if p.coefficient > 0]
        selected.sort(key=lambda p: p.coefficient, reverse=True)
    else:
        selected = [p for p in pairs if p.coefficient < 0]
        selected.sort(key=lambda p: p.coefficient)
    return selected[:limit]
