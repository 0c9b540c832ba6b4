"""
Channel aggregation for a period.

Sums filtered weekly records per channel into investment, contribution and
ROI, with a month-by-month breakdown. Also derives the period summary and
the year-over-year budget comparison built on top of those aggregates.

ROI is contribution / investment, and 0 when a channel had no investment,
so downstream arithmetic never sees a division by zero.
"""

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Optional

from services.media_types import DEFAULT_MEDIA_TYPES, MediaType, MediaTypeTable
from services.records import WeeklyRecord

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Variation (in %) beyond which a year-over-year change is not "stable"
STABLE_VARIATION_PCT = 1.0


@dataclass(frozen=True)
class ChannelMetric:
    """Investment, contribution and ROI for one channel over one period."""
    channel: str
    media_type: MediaType
    investment: float = 0
    contribution: float = 0
    roi: float = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PeriodAggregate:
    """Aggregated metrics for one year or one explicit date range."""
    period_key: str
    channel_metrics: list[ChannelMetric]
    monthly_breakdown: dict[str, list[ChannelMetric]]
    base: float = 0
    sales: float = 0
    weeks: int = 0

    def metric(self, channel: str) -> Optional[ChannelMetric]:
        return next((m for m in self.channel_metrics if m.channel == channel), None)

    @property
    def channels(self) -> list[str]:
        return [m.channel for m in self.channel_metrics]

    def to_dict(self) -> dict:
        return {
            "period": self.period_key,
            "weeks": self.weeks,
            "base": self.base,
            "sales": self.sales,
            "channels": [m.to_dict() for m in self.channel_metrics],
            "monthly": {
                month: [m.to_dict() for m in metrics]
                for month, metrics in self.monthly_breakdown.items()
            },
        }


def compute_roi(contribution: float, investment: float) -> float:
    """Return on investment, defined as 0 for a never-funded channel."""
    return contribution / investment if investment > 0 else 0


def sum_by_channel(records: list[WeeklyRecord], channels: list[str]) -> dict[str, float]:
    """Total of each channel's weekly values. Missing values count as 0."""
    totals = {channel: 0.0 for channel in channels}
    for record in records:
        for channel in channels:
            totals[channel] += record.value(channel)
    return totals


def build_channel_metrics(
    investment_totals: dict[str, float],
    contribution_totals: dict[str, float],
    channels: list[str],
    media_types: MediaTypeTable = DEFAULT_MEDIA_TYPES,
) -> list[ChannelMetric]:
    metrics = []
    for channel in channels:
        investment = investment_totals.get(channel, 0.0)
        contribution = contribution_totals.get(channel, 0.0)
        metrics.append(ChannelMetric(
            channel=channel,
            media_type=media_types.classify(channel),
            investment=investment,
            contribution=contribution,
            roi=compute_roi(contribution, investment),
        ))
    return metrics


def _bucket_by_month(records: list[WeeklyRecord]) -> dict[str, list[WeeklyRecord]]:
    # Buckets are keyed by month name only, so the same month of different years folds together
    buckets = defaultdict(list)
    for record in records:
        buckets[MONTHS[record.date.month - 1]].append(record)
    return buckets


def aggregate(
    investments: list[WeeklyRecord],
    contributions: list[WeeklyRecord],
    channels: list[str],
    period_key: str = "",
    media_types: MediaTypeTable = DEFAULT_MEDIA_TYPES,
) -> PeriodAggregate:
    """
    Aggregate already-filtered weekly records into a PeriodAggregate.

    Pure function of its inputs. An empty window yields all-zero metrics.
    """
    channel_metrics = build_channel_metrics(
        sum_by_channel(investments, channels),
        sum_by_channel(contributions, channels),
        channels,
        media_types,
    )

    investments_by_month = _bucket_by_month(investments)
    contributions_by_month = _bucket_by_month(contributions)

    monthly_breakdown = {}
    for month in MONTHS:
        monthly_breakdown[month] = build_channel_metrics(
            sum_by_channel(investments_by_month.get(month, []), channels),
            sum_by_channel(contributions_by_month.get(month, []), channels),
            channels,
            media_types,
        )

    return PeriodAggregate(
        period_key=period_key,
        channel_metrics=channel_metrics,
        monthly_breakdown=monthly_breakdown,
        base=sum(r.base for r in contributions),
        sales=sum(r.sales for r in contributions),
        weeks=len({r.date for r in investments} | {r.date for r in contributions}),
    )


# ============================================================================
# PERIOD SUMMARY
# ============================================================================

@dataclass(frozen=True)
class MediaSplit:
    """Investment and contribution totals for one media type."""
    investment: float = 0
    contribution: float = 0
    roi: float = 0
    channels: list[str] = field(default_factory=list)


def _media_split(metrics: list[ChannelMetric], media_type: str) -> MediaSplit:
    subset = [m for m in metrics if m.media_type == media_type]
    investment = sum(m.investment for m in subset)
    contribution = sum(m.contribution for m in subset)
    return MediaSplit(
        investment=investment,
        contribution=contribution,
        roi=compute_roi(contribution, investment),
        channels=[m.channel for m in subset],
    )


def summarize_period(period: PeriodAggregate) -> dict:
    """
    Headline totals for a period.

    Returns totals, the online/offline split and the leading channels by ROI
    and by investment (None when the period has no channels).
    """
    metrics = period.channel_metrics
    total_investment = sum(m.investment for m in metrics)
    total_contribution = sum(m.contribution for m in metrics)

    top_roi = max(metrics, key=lambda m: m.roi, default=None)
    top_investment = max(metrics, key=lambda m: m.investment, default=None)

    return {
        "period": period.period_key,
        "weeks": period.weeks,
        "total_investment": total_investment,
        "total_contribution": total_contribution,
        "roi": compute_roi(total_contribution, total_investment),
        "base": period.base,
        "sales": period.sales,
        "online": asdict(_media_split(metrics, "Online")),
        "offline": asdict(_media_split(metrics, "Offline")),
        "top_roi_channel": top_roi.to_dict() if top_roi else None,
        "top_investment_channel": top_investment.to_dict() if top_investment else None,
    }


# ============================================================================
# YEAR-OVER-YEAR BUDGET COMPARISON
# ============================================================================

def variation_pct(previous: float, current: float) -> float:
    """Percentage change from previous to current, 0 when previous is 0."""
    if previous == 0:
        return 0
    return (current - previous) / previous * 100


def trend_label(variation: float) -> str:
    if variation > STABLE_VARIATION_PCT:
        return "increase"
    if variation < -STABLE_VARIATION_PCT:
        return "decrease"
    return "stable"


def compare_years(previous: PeriodAggregate, current: PeriodAggregate) -> dict:
    """
    Compare per-channel investment between two periods.

    Channels present in either period are included; a channel missing from
    one side counts as 0 investment there.
    """
    channels = list(dict.fromkeys(previous.channels + current.channels))

    rows = []
    for channel in channels:
        prev_metric = previous.metric(channel)
        curr_metric = current.metric(channel)
        prev_investment = prev_metric.investment if prev_metric else 0
        curr_investment = curr_metric.investment if curr_metric else 0
        variation = variation_pct(prev_investment, curr_investment)
        rows.append({
            "channel": channel,
            "previous_budget": prev_investment,
            "current_budget": curr_investment,
            "variation": variation,
            "trend": trend_label(variation),
        })

    total_previous = sum(r["previous_budget"] for r in rows)
    total_current = sum(r["current_budget"] for r in rows)

    return {
        "previous_period": previous.period_key,
        "current_period": current.period_key,
        "channels": rows,
        "total_previous": total_previous,
        "total_current": total_current,
        "total_variation": variation_pct(total_previous, total_current),
    }
