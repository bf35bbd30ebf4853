"""What-if re-simulation of the forecast over an adjusted snapshot."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime

from .forecast import ForecastSummary, aggregate_forecast
from .opportunity import Opportunity, ScenarioAdjustment
from .periods import PeriodRange
from .scoring import as_calendar_date, score_opportunities
from .settings import ScoringSettings


@dataclass(frozen=True)
class ForecastDelta:
    """Scenario minus baseline for the headline figures."""

    total_pipeline: float = 0.0
    weighted_pipeline: float = 0.0
    pessimistic: float = 0.0
    likely: float = 0.0
    optimistic: float = 0.0


@dataclass(frozen=True)
class ScenarioResult:
    baseline: ForecastSummary
    scenario: ForecastSummary
    delta: ForecastDelta
    adjusted_ids: tuple[str, ...]


def apply_adjustment(opportunity: Opportunity, adjustment: ScenarioAdjustment) -> Opportunity:
    """Return a copy of ``opportunity`` with the adjustment's set fields overlaid."""
    updated = opportunity
    if adjustment.new_stage is not None:
        updated = replace(updated, stage=adjustment.new_stage)
    if adjustment.new_value is not None:
        updated = replace(updated, amount=adjustment.new_value)
    if adjustment.new_close_date is not None:
        # The forecasted date is the effective one when present.
        if updated.forecasted_close_date is not None:
            updated = replace(updated, forecasted_close_date=adjustment.new_close_date)
        else:
            updated = replace(updated, close_date=adjustment.new_close_date)
    return updated


def build_scenario_snapshot(
    opportunities: Iterable[Opportunity],
    adjustments: Sequence[ScenarioAdjustment],
) -> tuple[list[Opportunity], tuple[str, ...]]:
    """Copy the opportunities with adjustments applied; unknown IDs are ignored.

    Returns:
        The snapshot and the IDs of opportunities that were adjusted, in input order.
    """
    by_id: dict[str, list[ScenarioAdjustment]] = {}
    for adjustment in adjustments:
        by_id.setdefault(adjustment.opportunity_id, []).append(adjustment)

    snapshot: list[Opportunity] = []
    adjusted: list[str] = []
    for opportunity in opportunities:
        pending = by_id.get(opportunity.id)
        if not pending:
            snapshot.append(replace(opportunity))
            continue
        updated = opportunity
        for adjustment in pending:
            updated = apply_adjustment(updated, adjustment)
        snapshot.append(updated)
        adjusted.append(opportunity.id)
    return snapshot, tuple(adjusted)


def forecast_delta(baseline: ForecastSummary, scenario: ForecastSummary) -> ForecastDelta:
    return ForecastDelta(
        total_pipeline=scenario.total_pipeline - baseline.total_pipeline,
        weighted_pipeline=scenario.weighted_pipeline - baseline.weighted_pipeline,
        pessimistic=scenario.forecast.pessimistic - baseline.forecast.pessimistic,
        likely=scenario.forecast.likely - baseline.forecast.likely,
        optimistic=scenario.forecast.optimistic - baseline.forecast.optimistic,
    )


def simulate_scenario(
    opportunities: Sequence[Opportunity],
    settings: ScoringSettings,
    period: PeriodRange,
    adjustments: Sequence[ScenarioAdjustment],
    *,
    now: date | datetime,
    exclude_overdue: bool = False,
) -> ScenarioResult:
    """Forecast the pipeline as-is and with ``adjustments`` applied, and diff them.

    Neither ``opportunities`` nor the objects inside it are modified.
    """
    today = as_calendar_date(now)
    baseline = aggregate_forecast(
        score_opportunities(opportunities, settings, today),
        period,
        exclude_overdue=exclude_overdue,
        today=today,
    )
    snapshot, adjusted_ids = build_scenario_snapshot(opportunities, adjustments)
    scenario = aggregate_forecast(
        score_opportunities(snapshot, settings, today),
        period,
        exclude_overdue=exclude_overdue,
        today=today,
    )
    return ScenarioResult(
        baseline=baseline,
        scenario=scenario,
        delta=forecast_delta(baseline, scenario),
        adjusted_ids=adjusted_ids,
    )
