"""Response payloads with stable camelCase field names, and CSV tables."""

from __future__ import annotations

import math
from datetime import date

import pandas as pd

from ..domain.confidence import score_band
from ..domain.forecast import ForecastSummary
from ..domain.periods import PeriodRange
from ..domain.rep_performance import RepPerformance
from ..domain.risk import AtRiskPanel, FactorDriver, ForecastDrivers
from ..domain.scenario import ForecastDelta
from ..domain.scoring import ScoredOpportunity
from .revenue_intelligence import ForecastReport, RepPerformanceReport, ScenarioReport

CUSTOM_PERIOD = "custom"

DEAL_TABLE_COLUMNS: tuple[str, ...] = (
    "id",
    "title",
    "ownerId",
    "stage",
    "amount",
    "closeDate",
    "score",
    "confidence",
    "scoreBand",
    "weightedAmount",
)

REP_TABLE_COLUMNS: tuple[str, ...] = (
    "ownerId",
    "ownerName",
    "totalDeals",
    "openDeals",
    "closedWon",
    "closedLost",
    "totalValue",
    "wonValue",
    "lostValue",
    "pipelineValue",
    "avgDealSize",
    "winRate",
    "forecastedRevenue",
    "performanceScore",
)


def round_currency(value: float) -> int:
    """Round half up to a whole currency unit."""
    return int(math.floor(value + 0.5))


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def period_payload(period: PeriodRange) -> dict[str, object]:
    return {
        "period": period.period.value if period.period is not None else CUSTOM_PERIOD,
        "startDate": period.start.isoformat(),
        "endDate": period.end.isoformat(),
    }


def scored_deal_payload(deal: ScoredOpportunity) -> dict[str, object]:
    opportunity = deal.opportunity
    return {
        "id": opportunity.id,
        "title": opportunity.title,
        "ownerId": opportunity.owner_id,
        "stage": opportunity.stage,
        "amount": opportunity.amount,
        "forecastedCloseDate": _iso(opportunity.forecasted_close_date),
        "closeDate": _iso(opportunity.close_date),
        "aiScore": deal.score,
        "aiConfidence": deal.confidence.value,
        "scoreBand": score_band(deal.score),
        "aiFactors": [
            {"factor": factor.factor, "impact": factor.impact, "description": factor.description}
            for factor in deal.factors
        ],
    }


def summary_payload(summary: ForecastSummary) -> dict[str, object]:
    return {
        "totalDeals": summary.total_deals,
        "totalPipeline": summary.total_pipeline,
        "weightedPipeline": summary.weighted_pipeline,
        "closedWon": summary.closed_won,
        "forecast": {
            "pessimistic": round_currency(summary.forecast.pessimistic),
            "likely": round_currency(summary.forecast.likely),
            "optimistic": round_currency(summary.forecast.optimistic),
        },
        "confidence": {
            "high": summary.confidence_counts.high,
            "medium": summary.confidence_counts.medium,
            "low": summary.confidence_counts.low,
        },
    }


def by_stage_payload(summary: ForecastSummary) -> dict[str, object]:
    return {
        stage: {
            "count": breakdown.count,
            "value": breakdown.value,
            "weightedValue": breakdown.weighted_value,
        }
        for stage, breakdown in summary.by_stage.items()
    }


def at_risk_payload(panel: AtRiskPanel) -> dict[str, object]:
    return {
        "noActivityDays": panel.no_activity_days,
        "stuckInStageDays": panel.stuck_in_stage_days,
        "overdueCount": len(panel.overdue),
        "noActivityCount": len(panel.no_activity),
        "stuckCount": len(panel.stuck),
        "rows": [
            {
                "id": row.deal.opportunity.id,
                "title": row.deal.opportunity.title,
                "ownerId": row.deal.opportunity.owner_id,
                "stage": row.deal.opportunity.stage,
                "amount": row.deal.opportunity.amount,
                "aiScore": row.deal.score,
                "reason": row.reason.value,
            }
            for row in panel.rows
        ],
    }


def _driver_payload(driver: FactorDriver) -> dict[str, object]:
    return {"factor": driver.factor, "impact": driver.total_impact}


def drivers_payload(drivers: ForecastDrivers) -> dict[str, object]:
    return {
        "pipelineDeals": drivers.pipeline_deals,
        "overdueCount": drivers.overdue_count,
        "confidence": {"high": drivers.high, "medium": drivers.medium, "low": drivers.low},
        "topPositive": [_driver_payload(driver) for driver in drivers.top_positive],
        "topNegative": [_driver_payload(driver) for driver in drivers.top_negative],
    }


def forecast_payload(report: ForecastReport) -> dict[str, object]:
    return {
        **period_payload(report.period),
        "summary": summary_payload(report.summary),
        "byStage": by_stage_payload(report.summary),
        "deals": [scored_deal_payload(deal) for deal in report.deals],
        "atRisk": at_risk_payload(report.at_risk),
        "drivers": drivers_payload(report.drivers),
    }


def rep_payload(rep: RepPerformance, owner_name: str | None = None) -> dict[str, object]:
    return {
        "ownerId": rep.owner_id,
        "ownerName": owner_name or rep.owner_id,
        "totalDeals": rep.total_deals,
        "openDeals": rep.open_deals,
        "closedWon": rep.closed_won,
        "closedLost": rep.closed_lost,
        "totalValue": rep.total_value,
        "wonValue": rep.won_value,
        "lostValue": rep.lost_value,
        "pipelineValue": rep.pipeline_value,
        "avgDealSize": rep.avg_deal_size,
        "winRate": rep.win_rate,
        "forecastedRevenue": rep.forecasted_revenue,
        "performanceScore": rep.performance_score,
    }


def rep_performance_payload(report: RepPerformanceReport) -> dict[str, object]:
    return {
        **period_payload(report.period),
        "reps": [rep_payload(rep, report.display_names.get(rep.owner_id)) for rep in report.reps],
        "summary": {
            "totalReps": report.summary.total_reps,
            "totalPipeline": report.summary.total_pipeline,
            "totalWon": report.summary.total_won,
            "avgWinRate": report.summary.avg_win_rate,
        },
    }


def _delta_payload(delta: ForecastDelta) -> dict[str, object]:
    return {
        "totalPipeline": delta.total_pipeline,
        "weightedPipeline": delta.weighted_pipeline,
        "pessimistic": round_currency(delta.pessimistic),
        "likely": round_currency(delta.likely),
        "optimistic": round_currency(delta.optimistic),
    }


def scenario_payload(report: ScenarioReport) -> dict[str, object]:
    result = report.result
    return {
        "baseline": {**period_payload(report.period), **summary_payload(result.baseline)},
        "scenario": {**period_payload(report.period), **summary_payload(result.scenario)},
        "delta": _delta_payload(result.delta),
        "adjustedDealIds": list(result.adjusted_ids),
    }


def deal_score_payload(deal: ScoredOpportunity) -> dict[str, object]:
    return scored_deal_payload(deal)


def deals_frame(report: ForecastReport) -> pd.DataFrame:
    """Scored deals as a flat table, highest score first."""
    rows = [
        {
            "id": deal.opportunity.id,
            "title": deal.opportunity.title,
            "ownerId": deal.opportunity.owner_id or "",
            "stage": deal.opportunity.stage,
            "amount": deal.opportunity.amount,
            "closeDate": _iso(deal.opportunity.effective_close_date) or "",
            "score": deal.score,
            "confidence": deal.confidence.value,
            "scoreBand": score_band(deal.score),
            "weightedAmount": deal.weighted_amount,
        }
        for deal in report.deals
    ]
    df = pd.DataFrame(rows, columns=list(DEAL_TABLE_COLUMNS))
    return df.sort_values(["score", "id"], ascending=[False, True]).reset_index(drop=True)


def reps_frame(report: RepPerformanceReport) -> pd.DataFrame:
    """Rep leaderboard as a flat table in ranking order."""
    rows = [rep_payload(rep, report.display_names.get(rep.owner_id)) for rep in report.reps]
    return pd.DataFrame(rows, columns=list(REP_TABLE_COLUMNS))
