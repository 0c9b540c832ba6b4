"""
Query layer over a loaded RecordRepository.

These are the read-only queries the API exposes: period aggregates,
synergies, year-over-year comparison, response curves and the optimizer
baseline. Every call rebuilds its result from the loaded records; nothing
is stored between calls.
"""

from datetime import date
from typing import Any, Optional

from services.aggregator import (
    PeriodAggregate,
    aggregate,
    compare_years,
    summarize_period,
)
from services.correlation import (
    CorrelationPair,
    contribution_series,
    correlate,
    strongest_synergies,
)
from services.errors import MissingDataError
from services.media_types import DEFAULT_MEDIA_TYPES, MediaTypeTable
from services.optimizer import CEILING_RATIO, AllocationState
from services.records import filter_by_window, filter_by_year, to_day
from services.repository import RecordRepository
from services.response import (
    DEFAULT_CURVE_SAMPLES,
    observed_points,
    optimal_range,
    power_law_for,
    sample_curve,
)


def aggregate_by_year(repo: RecordRepository, year: int, media_types: MediaTypeTable = DEFAULT_MEDIA_TYPES) -> PeriodAggregate:
    """Aggregate every channel over one calendar year."""
    return aggregate(
        filter_by_year(repo.investments, year),
        filter_by_year(repo.contributions, year),
        repo.channels,
        period_key=str(year),
        media_types=media_types,
    )


def aggregate_by_range(repo: RecordRepository, start: Any, end: Any, media_types: MediaTypeTable = DEFAULT_MEDIA_TYPES) -> PeriodAggregate:
    """Aggregate every channel over an inclusive date range."""
    start_day, end_day = to_day(start), to_day(end)
    if start_day is None or end_day is None:
        raise ValueError(f"Invalid date range: {start!r} to {end!r}")
    if start_day > end_day:
        raise ValueError(f"Start date {start_day} is after end date {end_day}")

    return aggregate(
        filter_by_window(repo.investments, start_day, end_day),
        filter_by_window(repo.contributions, start_day, end_day),
        repo.channels,
        period_key=f"{start_day.isoformat()}/{end_day.isoformat()}",
        media_types=media_types,
    )


def correlate_year(repo: RecordRepository, year: int) -> list[CorrelationPair]:
    """Pairwise correlation of weekly contributions within a year."""
    weeks = filter_by_year(repo.contributions, year)
    return correlate(contribution_series(weeks, repo.channels))


def compare_with_previous_year(repo: RecordRepository, year: int, media_types: MediaTypeTable = DEFAULT_MEDIA_TYPES) -> dict:
    """
    Year-over-year budget comparison for `year` against `year - 1`.

    Raises MissingDataError when the previous year has no investment.
    """
    previous = aggregate_by_year(repo, year - 1, media_types)
    if not any(m.investment > 0 for m in previous.channel_metrics):
        raise MissingDataError(f"No investment data available for {year - 1}")

    current = aggregate_by_year(repo, year, media_types)
    return compare_years(previous, current)


def build_insights(period: PeriodAggregate, synergies: Optional[list[CorrelationPair]] = None) -> list[str]:
    """
    Plain-text observations about a period, for the conversational assistant.

    Values are left unformatted beyond thousands separators; currency and
    localization belong to the presentation layer.
    """
    summary = summarize_period(period)
    insights = [
        f"Total investment across all channels: {summary['total_investment']:,.0f}",
        f"Total contribution across all channels: {summary['total_contribution']:,.0f}",
        f"Average ROI across all channels: {summary['roi']:.2f}x",
    ]

    top_roi = summary["top_roi_channel"]
    if top_roi:
        insights.append(f"Top performing channel by ROI: {top_roi['channel']} ({top_roi['roi']:.2f}x)")

    top_investment = summary["top_investment_channel"]
    if top_investment:
        insights.append(
            f"Highest investment channel: {top_investment['channel']} ({top_investment['investment']:,.0f})"
        )

    unfunded = [m.channel for m in period.channel_metrics if m.investment == 0]
    if unfunded:
        insights.append(f"Channels with no investment this period: {', '.join(unfunded)}")

    if synergies:
        best = strongest_synergies(synergies, limit=1, positive=True)
        if best:
            insights.append(
                f"Strongest synergy: {best[0].channel_a} & {best[0].channel_b} ({best[0].coefficient:.2f})"
            )
        worst = strongest_synergies(synergies, limit=1, positive=False)
        if worst:
            insights.append(
                f"Strongest negative correlation: {worst[0].channel_a} & {worst[0].channel_b} ({worst[0].coefficient:.2f})"
            )

    return insights


def allocation_baseline(repo: RecordRepository, year: int, media_types: MediaTypeTable = DEFAULT_MEDIA_TYPES) -> list[AllocationState]:
    """Optimizer starting point: each channel's investment and ROI for a year."""
    period = aggregate_by_year(repo, year, media_types)
    return [
        AllocationState(channel=m.channel, current_budget=m.investment, current_roi=m.roi)
        for m in period.channel_metrics
    ]


def response_curve(
    repo: RecordRepository,
    channel: str,
    year: int,
    samples: int = DEFAULT_CURVE_SAMPLES,
    media_types: MediaTypeTable = DEFAULT_MEDIA_TYPES,
) -> dict:
    """
    Power-law response curve, optimal zone and observed weekly points for a channel.

    Raises KeyError for an unknown channel.
    """
    if channel not in repo.channels:
        raise KeyError(channel)

    investments = filter_by_year(repo.investments, year)
    contributions = filter_by_year(repo.contributions, year)
    points = observed_points(investments, contributions, channel)

    period = aggregate(investments, contributions, [channel], period_key=str(year), media_types=media_types)
    metric = period.metric(channel)
    curve = power_law_for(metric, points)

    result = {
        "channel": channel,
        "year": year,
        "metric": metric.to_dict(),
        "observed": [{"investment": x, "contribution": y} for x, y in points],
        "curve": [],
        "optimal_zone": None,
        "parameters": None,
    }
    if curve is None:
        return result

    max_budget = metric.investment * CEILING_RATIO
    result["curve"] = [
        {"investment": p.investment, "contribution": p.contribution, "roi": p.roi}
        for p in sample_curve(curve, max_budget, samples)
    ]
    result["optimal_zone"] = optimal_range(curve, max_budget, samples).to_dict()
    result["parameters"] = {
        "max_roi": curve.max_roi,
        "concavity": curve.concavity,
        "reference_budget": curve.reference_budget,
        "scale": curve.scale,
    }
    return result


def data_status(repo: RecordRepository) -> dict:
    """Summary of what is currently loaded."""
    if not repo.is_loaded:
        return {"loaded": False, "source": None, "channels": [], "years": [], "date_range": None}

    date_range = repo.date_range()
    return {
        "loaded": True,
        "source": repo.source,
        "channels": repo.channels,
        "years": repo.available_years(),
        "date_range": _range_dict(date_range),
        "investment_weeks": len(repo.investments),
        "contribution_weeks": len(repo.contributions),
    }


def _range_dict(date_range: Optional[tuple[date, date]]) -> Optional[dict]:
    if date_range is None:
        return None
    return {"start": date_range[0].isoformat(), "end": date_range[1].isoformat()}
