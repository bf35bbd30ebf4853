"""At-risk deal flags and forecast drivers.

Flags use the ``stale_panel`` settings group and never feed back into scores.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from .confidence import Confidence
from .forecast import is_overdue, partition_pipeline
from .opportunity import days_between
from .scoring import ScoredOpportunity, effective_days_in_stage
from .settings import ScoringSettings

DEFAULT_AT_RISK_LIMIT = 15
TOP_DRIVER_COUNT = 3


class RiskReason(StrEnum):
    """Why a deal is flagged, in priority order."""

    OVERDUE = "Overdue"
    NO_ACTIVITY = "No activity"
    STUCK_IN_STAGE = "Stuck in stage"


@dataclass(frozen=True)
class AtRiskDeal:
    deal: ScoredOpportunity
    reason: RiskReason


@dataclass(frozen=True)
class AtRiskPanel:
    """Flagged open deals; ``rows`` holds each deal once, highest-priority reason first."""

    no_activity_days: int
    stuck_in_stage_days: int
    overdue: tuple[ScoredOpportunity, ...]
    no_activity: tuple[ScoredOpportunity, ...]
    stuck: tuple[ScoredOpportunity, ...]
    rows: tuple[AtRiskDeal, ...]


@dataclass(frozen=True)
class FactorDriver:
    factor: str
    total_impact: int


@dataclass(frozen=True)
class ForecastDrivers:
    pipeline_deals: int
    overdue_count: int
    high: int
    medium: int
    low: int
    top_positive: tuple[FactorDriver, ...]
    top_negative: tuple[FactorDriver, ...]


def _has_no_activity(deal: ScoredOpportunity, today: date, threshold: int) -> bool:
    last_activity = deal.opportunity.last_activity_at
    if last_activity is None:
        return False
    return days_between(last_activity, today) >= threshold


def _is_stuck(deal: ScoredOpportunity, today: date, threshold: int) -> bool:
    days_in_stage = effective_days_in_stage(deal.opportunity, today)
    return days_in_stage is not None and days_in_stage >= threshold


def find_at_risk_deals(
    scored: Iterable[ScoredOpportunity],
    settings: ScoringSettings,
    today: date,
    *,
    limit: int = DEFAULT_AT_RISK_LIMIT,
) -> AtRiskPanel:
    """Flag open deals that are overdue, quiet, or stuck in their stage."""
    open_deals = partition_pipeline(scored).open
    thresholds = settings.stale_panel
    overdue = tuple(deal for deal in open_deals if is_overdue(deal, today))
    no_activity = tuple(
        deal for deal in open_deals if _has_no_activity(deal, today, thresholds.no_activity_days)
    )
    stuck = tuple(
        deal for deal in open_deals if _is_stuck(deal, today, thresholds.stuck_in_stage_days)
    )

    rows: dict[str, AtRiskDeal] = {}
    for reason, deals in (
        (RiskReason.OVERDUE, overdue),
        (RiskReason.NO_ACTIVITY, no_activity),
        (RiskReason.STUCK_IN_STAGE, stuck),
    ):
        for deal in deals:
            rows.setdefault(deal.opportunity.id, AtRiskDeal(deal=deal, reason=reason))

    return AtRiskPanel(
        no_activity_days=thresholds.no_activity_days,
        stuck_in_stage_days=thresholds.stuck_in_stage_days,
        overdue=overdue,
        no_activity=no_activity,
        stuck=stuck,
        rows=tuple(rows.values())[: max(0, limit)],
    )


def summarise_drivers(scored: Sequence[ScoredOpportunity], today: date) -> ForecastDrivers:
    """Total factor impacts across open deals and pick the strongest movers."""
    open_deals = partition_pipeline(scored).open
    totals: dict[str, int] = {}
    for deal in open_deals:
        for factor in deal.factors:
            totals[factor.factor] = totals.get(factor.factor, 0) + factor.impact

    drivers = [FactorDriver(factor=name, total_impact=total) for name, total in totals.items()]
    positive = sorted(
        (driver for driver in drivers if driver.total_impact > 0),
        key=lambda driver: -driver.total_impact,
    )
    negative = sorted(
        (driver for driver in drivers if driver.total_impact < 0),
        key=lambda driver: driver.total_impact,
    )
    return ForecastDrivers(
        pipeline_deals=len(open_deals),
        overdue_count=sum(1 for deal in open_deals if is_overdue(deal, today)),
        high=sum(1 for deal in open_deals if deal.confidence is Confidence.HIGH),
        medium=sum(1 for deal in open_deals if deal.confidence is Confidence.MEDIUM),
        low=sum(1 for deal in open_deals if deal.confidence is Confidence.LOW),
        top_positive=tuple(positive[:TOP_DRIVER_COUNT]),
        top_negative=tuple(negative[:TOP_DRIVER_COUNT]),
    )
