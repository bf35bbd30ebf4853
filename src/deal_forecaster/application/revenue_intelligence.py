"""Revenue intelligence entry points wired to the data-access protocols.

Example:
    >>> from datetime import date
    >>> from pathlib import Path
    >>> from deal_forecaster.application.revenue_intelligence import run_forecast
    >>> from deal_forecaster.application.settings_store import SettingsStore
    >>> from deal_forecaster.infrastructure import (
    ...     JsonFileCrmSource,
    ...     JsonFileSettingsRepository,
    ...     LocalFileSystem,
    ... )
    >>> fs = LocalFileSystem()
    >>> repository = JsonFileSettingsRepository(Path("data/settings/scoring_settings.json"), fs)
    >>> store = SettingsStore(repository)
    >>> source = JsonFileCrmSource(Path("data/crm/crm_data.json"), fs)
    >>> report = run_forecast(source=source, settings_store=store, today=date.today())
    >>> report.summary.forecast.likely

Each entry point fetches its data once, reads the settings once and then runs
the pure domain functions. Nothing computed here is persisted.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType

from ..domain.forecast import ForecastSummary, aggregate_forecast, in_period
from ..domain.opportunity import ScenarioAdjustment
from ..domain.periods import ForecastPeriod, PeriodRange, resolve_period_range
from ..domain.rep_performance import (
    UNASSIGNED_OWNER,
    RepPerformance,
    RepPerformanceSummary,
    compute_rep_performance,
    summarise_reps,
)
from ..domain.risk import (
    DEFAULT_AT_RISK_LIMIT,
    AtRiskPanel,
    ForecastDrivers,
    find_at_risk_deals,
    summarise_drivers,
)
from ..domain.scenario import ScenarioResult, simulate_scenario
from ..domain.scoring import ScoredOpportunity, score_opportunities, score_opportunity
from ..exceptions import OpportunityNotFoundError
from ..observability import get_logger
from ..protocols import OpportunityQuery, OpportunitySource, OwnerDirectory
from .settings_store import SettingsStore


@dataclass(frozen=True)
class ForecastReport:
    """Forecast for one period plus the scored deals behind it."""

    period: PeriodRange
    summary: ForecastSummary
    deals: tuple[ScoredOpportunity, ...]
    at_risk: AtRiskPanel
    drivers: ForecastDrivers


@dataclass(frozen=True)
class RepPerformanceReport:
    period: PeriodRange
    reps: tuple[RepPerformance, ...]
    summary: RepPerformanceSummary
    display_names: Mapping[str, str]


@dataclass(frozen=True)
class ScenarioReport:
    period: PeriodRange
    result: ScenarioResult


def _query_for(period: PeriodRange, owner_id: str | None = None) -> OpportunityQuery:
    return OpportunityQuery(
        start=period.start,
        end_exclusive=period.end_exclusive,
        owner_id=owner_id,
    )


def run_forecast(
    *,
    source: OpportunitySource,
    settings_store: SettingsStore,
    today: date,
    period: str | ForecastPeriod = ForecastPeriod.CURRENT_QUARTER,
    start: date | None = None,
    end: date | None = None,
    owner_id: str | None = None,
    exclude_overdue: bool = False,
    at_risk_limit: int = DEFAULT_AT_RISK_LIMIT,
) -> ForecastReport:
    """Score the period's opportunities and aggregate them into a forecast.

    Args:
        source: Opportunity records.
        settings_store: Scoring settings, read once for this call.
        today: Local calendar date the period and day counts are relative to.
        period: Named period; ignored when both ``start`` and ``end`` are given.
        start: Inclusive custom range start.
        end: Inclusive custom range end.
        owner_id: Restrict to one owner (``"Unassigned"`` matches ownerless deals).
        exclude_overdue: Drop open deals whose close date has passed.
        at_risk_limit: Maximum rows in the at-risk panel.

    Returns:
        ForecastReport with summary, scored deals, at-risk panel and drivers.
    """
    logger = get_logger("deal_forecaster.forecast")
    period_range = resolve_period_range(period, today, start=start, end=end)
    settings = settings_store.get()
    opportunities = source.list_opportunities(_query_for(period_range, owner_id))
    scored = score_opportunities(opportunities, settings, today)
    summary = aggregate_forecast(
        scored, period_range, exclude_overdue=exclude_overdue, today=today
    )
    logger.info(
        "Forecast %s to %s: %s deals, likely %.2f",
        period_range.start.isoformat(),
        period_range.end.isoformat(),
        summary.total_deals,
        summary.forecast.likely,
    )
    return ForecastReport(
        period=period_range,
        summary=summary,
        deals=tuple(deal for deal in scored if in_period(deal, period_range)),
        at_risk=find_at_risk_deals(scored, settings, today, limit=at_risk_limit),
        drivers=summarise_drivers(scored, today),
    )


def run_rep_performance(
    *,
    source: OpportunitySource,
    settings_store: SettingsStore,
    today: date,
    owners: OwnerDirectory | None = None,
    period: str | ForecastPeriod = ForecastPeriod.CURRENT_QUARTER,
    start: date | None = None,
    end: date | None = None,
) -> RepPerformanceReport:
    """Rank owners by forecasted revenue over the period's opportunities."""
    logger = get_logger("deal_forecaster.rep_performance")
    period_range = resolve_period_range(period, today, start=start, end=end)
    settings = settings_store.get()
    opportunities = source.list_opportunities(_query_for(period_range))
    reps = compute_rep_performance(score_opportunities(opportunities, settings, today))

    display_names: dict[str, str] = {}
    if owners is not None:
        for rep in reps:
            if rep.owner_id == UNASSIGNED_OWNER:
                continue
            name = owners.display_name(rep.owner_id)
            if name:
                display_names[rep.owner_id] = name

    logger.info("Rep performance: %s reps over %s deals", len(reps), len(opportunities))
    return RepPerformanceReport(
        period=period_range,
        reps=tuple(reps),
        summary=summarise_reps(reps),
        display_names=MappingProxyType(display_names),
    )


def run_scenario(
    *,
    source: OpportunitySource,
    settings_store: SettingsStore,
    adjustments: Sequence[ScenarioAdjustment],
    today: date,
    period: str | ForecastPeriod = ForecastPeriod.CURRENT_QUARTER,
    start: date | None = None,
    end: date | None = None,
    exclude_overdue: bool = False,
) -> ScenarioReport:
    """Compare the period's forecast with and without ``adjustments``."""
    logger = get_logger("deal_forecaster.scenario")
    period_range = resolve_period_range(period, today, start=start, end=end)
    settings = settings_store.get()
    opportunities = source.list_opportunities(_query_for(period_range))
    result = simulate_scenario(
        opportunities,
        settings,
        period_range,
        adjustments,
        now=today,
        exclude_overdue=exclude_overdue,
    )
    ignored = len({adjustment.opportunity_id for adjustment in adjustments}) - len(
        result.adjusted_ids
    )
    if ignored > 0:
        logger.warning("Ignored adjustments for %s unknown opportunities", ignored)
    logger.info(
        "Scenario: %s deals adjusted, likely delta %.2f",
        len(result.adjusted_ids),
        result.delta.likely,
    )
    return ScenarioReport(period=period_range, result=result)


def score_deal(
    *,
    source: OpportunitySource,
    settings_store: SettingsStore,
    opportunity_id: str,
    today: date,
) -> ScoredOpportunity:
    """Score a single opportunity by ID.

    Raises:
        OpportunityNotFoundError: If the source has no such opportunity.
    """
    opportunity = source.get_opportunity(opportunity_id)
    if opportunity is None:
        raise OpportunityNotFoundError(opportunity_id)
    return score_opportunity(opportunity, settings_store.get(), today)
