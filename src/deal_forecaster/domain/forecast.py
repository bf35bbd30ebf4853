"""Pipeline aggregation and three-point revenue forecast."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType

from .confidence import Confidence
from .periods import PeriodRange
from .scoring import ScoredOpportunity
from .stages import StageOutcome, stage_outcome


@dataclass(frozen=True)
class ForecastRange:
    """Revenue under each forecast scenario."""

    pessimistic: float = 0.0
    likely: float = 0.0
    optimistic: float = 0.0


# Share of an open deal's amount counted towards each scenario, per tier.
BUCKET_SHARES: Mapping[Confidence, ForecastRange] = MappingProxyType(
    {
        Confidence.HIGH: ForecastRange(pessimistic=0.70, likely=0.85, optimistic=0.95),
        Confidence.MEDIUM: ForecastRange(pessimistic=0.30, likely=0.50, optimistic=0.70),
        Confidence.LOW: ForecastRange(pessimistic=0.10, likely=0.20, optimistic=0.40),
    }
)


@dataclass(frozen=True)
class ConfidenceCounts:
    high: int = 0
    medium: int = 0
    low: int = 0


@dataclass(frozen=True)
class StageBreakdown:
    count: int = 0
    value: float = 0.0
    weighted_value: float = 0.0


@dataclass(frozen=True)
class ForecastSummary:
    """Pipeline totals and forecast range for one period."""

    period: PeriodRange
    total_deals: int = 0
    total_pipeline: float = 0.0
    weighted_pipeline: float = 0.0
    closed_won: float = 0.0
    forecast: ForecastRange = field(default_factory=ForecastRange)
    confidence_counts: ConfidenceCounts = field(default_factory=ConfidenceCounts)
    by_stage: Mapping[str, StageBreakdown] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True)
class PipelinePartition:
    """Scored deals split by outcome."""

    won: tuple[ScoredOpportunity, ...]
    lost: tuple[ScoredOpportunity, ...]
    open: tuple[ScoredOpportunity, ...]


def partition_pipeline(scored: Iterable[ScoredOpportunity]) -> PipelinePartition:
    won: list[ScoredOpportunity] = []
    lost: list[ScoredOpportunity] = []
    open_deals: list[ScoredOpportunity] = []
    for deal in scored:
        outcome = stage_outcome(deal.opportunity.stage)
        if outcome is StageOutcome.WON:
            won.append(deal)
        elif outcome is StageOutcome.LOST:
            lost.append(deal)
        else:
            open_deals.append(deal)
    return PipelinePartition(won=tuple(won), lost=tuple(lost), open=tuple(open_deals))


def is_overdue(deal: ScoredOpportunity, today: date) -> bool:
    """True when the effective close date is before ``today`` (date-only)."""
    close_date = deal.opportunity.effective_close_date
    return close_date is not None and close_date < today


def in_period(deal: ScoredOpportunity, period: PeriodRange) -> bool:
    """Deals without a known close date stay in scope."""
    close_date = deal.opportunity.effective_close_date
    return close_date is None or period.contains(close_date)


def forecast_open_deals(
    scored: Iterable[ScoredOpportunity],
    period: PeriodRange,
    *,
    exclude_overdue: bool,
    today: date,
) -> tuple[PipelinePartition, tuple[ScoredOpportunity, ...]]:
    """Return the partition of in-period deals and the open deals that are forecast."""
    partition = partition_pipeline(deal for deal in scored if in_period(deal, period))
    open_deals = partition.open
    if exclude_overdue:
        open_deals = tuple(deal for deal in open_deals if not is_overdue(deal, today))
    return partition, open_deals


def _stage_breakdown(open_deals: Iterable[ScoredOpportunity]) -> dict[str, StageBreakdown]:
    by_stage: dict[str, StageBreakdown] = {}
    for deal in open_deals:
        stage = deal.opportunity.stage
        current = by_stage.get(stage, StageBreakdown())
        by_stage[stage] = StageBreakdown(
            count=current.count + 1,
            value=current.value + deal.opportunity.amount,
            weighted_value=current.weighted_value + deal.weighted_amount,
        )
    return by_stage


def aggregate_forecast(
    scored: Iterable[ScoredOpportunity],
    period: PeriodRange,
    *,
    exclude_overdue: bool = False,
    today: date,
) -> ForecastSummary:
    """Aggregate scored deals into pipeline totals and a forecast range.

    Closed-won revenue is a guaranteed floor under every scenario; closed-lost
    deals are dropped; only open deals are weighted.

    Args:
        scored: Scored opportunities (any order).
        period: Range the forecast covers; deals closing outside it are ignored.
        exclude_overdue: Drop open deals whose close date is before ``today``.
        today: Local calendar date used for the overdue test.

    Returns:
        A fully populated summary, zero-valued when nothing qualifies.
    """
    partition, open_deals = forecast_open_deals(
        scored, period, exclude_overdue=exclude_overdue, today=today
    )
    closed_won = sum(deal.opportunity.amount for deal in partition.won)

    pessimistic = likely = optimistic = closed_won
    counts = {Confidence.HIGH: 0, Confidence.MEDIUM: 0, Confidence.LOW: 0}
    for deal in open_deals:
        share = BUCKET_SHARES[deal.confidence]
        amount = deal.opportunity.amount
        pessimistic += amount * share.pessimistic
        likely += amount * share.likely
        optimistic += amount * share.optimistic
        counts[deal.confidence] += 1

    return ForecastSummary(
        period=period,
        total_deals=len(partition.won) + len(open_deals),
        total_pipeline=sum(deal.opportunity.amount for deal in open_deals),
        weighted_pipeline=sum(deal.weighted_amount for deal in open_deals),
        closed_won=closed_won,
        forecast=ForecastRange(pessimistic=pessimistic, likely=likely, optimistic=optimistic),
        confidence_counts=ConfidenceCounts(
            high=counts[Confidence.HIGH],
            medium=counts[Confidence.MEDIUM],
            low=counts[Confidence.LOW],
        ),
        by_stage=MappingProxyType(_stage_breakdown(open_deals)),
    )
