"""Rule-based deal scoring.

Usage example:
    from datetime import date

    from deal_forecaster.domain.opportunity import Opportunity
    from deal_forecaster.domain.scoring import score_opportunity
    from deal_forecaster.domain.settings import default_scoring_settings

    opportunity = Opportunity(id="D-1", amount=50_000, stage="Negotiation")
    scored = score_opportunity(opportunity, default_scoring_settings(), date(2026, 1, 15))
    assert 0 <= scored.score <= 100

Each factor reads only the opportunity and the settings, never another
factor's output. The score starts at a neutral 50, adds every factor impact and
is clamped to 0–100. Factors with no impact are left out of the breakdown.
Threshold groups apply the highest single tier reached rather than a sum of
tiers.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime

from .confidence import Confidence, classify_confidence
from .opportunity import Opportunity, days_between
from .settings import ScoringSettings
from .stages import is_late_pipeline_stage, is_open_stage

BASELINE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100


@dataclass(frozen=True)
class ScoreFactor:
    """One signed contribution to a deal score."""

    factor: str
    impact: int
    description: str


@dataclass(frozen=True)
class ScoredOpportunity:
    """An opportunity with its derived score, tier and factor breakdown."""

    opportunity: Opportunity
    score: int
    confidence: Confidence
    factors: tuple[ScoreFactor, ...]

    @property
    def weighted_amount(self) -> float:
        return self.opportunity.amount * (self.score / 100)


FactorRule = Callable[[Opportunity, ScoringSettings, date], ScoreFactor | None]


def as_calendar_date(now: date | datetime) -> date:
    """Reduce a timestamp to its calendar date; dates pass through."""
    if isinstance(now, datetime):
        return now.date()
    return now


def stage_factor(
    opportunity: Opportunity, settings: ScoringSettings, today: date
) -> ScoreFactor | None:
    impact = round(settings.stage_weight(opportunity.stage))
    if impact == 0:
        return None
    direction = "increases" if impact > 0 else "decreases"
    return ScoreFactor(
        factor="Deal Stage",
        impact=impact,
        description=f"{opportunity.stage} stage {direction} likelihood",
    )


def deal_age_factor(
    opportunity: Opportunity, settings: ScoringSettings, today: date
) -> ScoreFactor | None:
    if opportunity.created_at is None:
        return None
    age = days_between(opportunity.created_at, today)
    rules = settings.deal_age
    if age > rules.stale_days:
        return ScoreFactor(
            "Deal Age", rules.stale_impact, f"Deal is stale (>{rules.stale_days} days old)"
        )
    if age > rules.aging_days:
        return ScoreFactor(
            "Deal Age", rules.aging_impact, f"Deal is aging (>{rules.aging_days} days old)"
        )
    if age > rules.warn_days:
        return ScoreFactor(
            "Deal Age", rules.warn_impact, f"Deal is maturing (>{rules.warn_days} days old)"
        )
    return None


def activity_factor(
    opportunity: Opportunity, settings: ScoringSettings, today: date
) -> ScoreFactor | None:
    if opportunity.last_activity_at is None:
        return None
    recency = days_between(opportunity.last_activity_at, today)
    rules = settings.activity
    if recency <= rules.hot_days:
        return ScoreFactor(
            "Recent Activity",
            rules.hot_impact,
            f"Active engagement within last {rules.hot_days} days",
        )
    if recency <= rules.warm_days:
        return ScoreFactor(
            "Recent Activity",
            rules.warm_impact,
            f"Recent engagement within {rules.warm_days} days",
        )
    if recency > rules.cold_days:
        return ScoreFactor(
            "Activity Gap", rules.cold_impact, f"No activity for over {rules.cold_days} days"
        )
    if recency > rules.cool_days:
        return ScoreFactor(
            "Activity Gap", rules.cool_impact, f"No activity for over {rules.cool_days} days"
        )
    return None


def account_factor(
    opportunity: Opportunity, settings: ScoringSettings, today: date
) -> ScoreFactor | None:
    if opportunity.account_created_at is None:
        return None
    account_age = days_between(opportunity.account_created_at, today)
    rules = settings.account
    if account_age > rules.mature_days:
        return ScoreFactor(
            "Account Maturity",
            rules.mature_impact,
            f"Established account (>{rules.mature_days} days)",
        )
    if account_age < rules.new_days:
        return ScoreFactor(
            "New Account", rules.new_impact, f"Very new account (<{rules.new_days} days)"
        )
    return None


def effective_days_in_stage(opportunity: Opportunity, today: date) -> int | None:
    """Recorded days in stage, else derived from when the stage last changed."""
    if opportunity.days_in_stage is not None:
        return opportunity.days_in_stage
    if opportunity.stage_changed_at is not None:
        return max(0, days_between(opportunity.stage_changed_at, today))
    return None


def stage_duration_factor(
    opportunity: Opportunity, settings: ScoringSettings, today: date
) -> ScoreFactor | None:
    if not is_open_stage(opportunity.stage):
        return None
    days_in_stage = effective_days_in_stage(opportunity, today)
    if days_in_stage is None:
        return None
    rules = settings.stage_duration
    if days_in_stage > rules.stuck_days:
        return ScoreFactor(
            "Stage Duration", rules.stuck_impact, f"Stuck in stage for >{rules.stuck_days} days"
        )
    if days_in_stage > rules.warn_days:
        return ScoreFactor(
            "Stage Duration", rules.warn_impact, f"In stage for >{rules.warn_days} days"
        )
    return None


def close_date_factor(
    opportunity: Opportunity, settings: ScoringSettings, today: date
) -> ScoreFactor | None:
    close_date = opportunity.effective_close_date
    if close_date is None or not is_open_stage(opportunity.stage):
        return None
    days_to_close = days_between(today, close_date)
    rules = settings.close_date
    if days_to_close < 0:
        return ScoreFactor("Overdue Close Date", rules.overdue_impact, "Close date has passed")
    if days_to_close <= rules.closing_soon_days and is_late_pipeline_stage(opportunity.stage):
        return ScoreFactor(
            "Closing Soon",
            rules.closing_soon_impact,
            f"Close date within {rules.closing_soon_days} days and in late stage",
        )
    if days_to_close <= rules.closing_soon_warm_days:
        return ScoreFactor(
            "Closing Soon",
            rules.closing_soon_warm_impact,
            f"Close date within {rules.closing_soon_warm_days} days",
        )
    return None


FACTOR_RULES: tuple[FactorRule, ...] = (
    stage_factor,
    deal_age_factor,
    activity_factor,
    account_factor,
    stage_duration_factor,
    close_date_factor,
)


def clamp_score(raw: float) -> int:
    return int(max(MIN_SCORE, min(MAX_SCORE, raw)))


def score_opportunity(
    opportunity: Opportunity,
    settings: ScoringSettings,
    now: date | datetime,
) -> ScoredOpportunity:
    """Score one opportunity against the given settings at ``now``."""
    today = as_calendar_date(now)
    factors: list[ScoreFactor] = []
    for rule in FACTOR_RULES:
        factor = rule(opportunity, settings, today)
        if factor is not None and factor.impact != 0:
            factors.append(factor)
    score = clamp_score(BASELINE_SCORE + sum(factor.impact for factor in factors))
    return ScoredOpportunity(
        opportunity=opportunity,
        score=score,
        confidence=classify_confidence(score),
        factors=tuple(factors),
    )


def score_opportunities(
    opportunities: Iterable[Opportunity],
    settings: ScoringSettings,
    now: date | datetime,
) -> list[ScoredOpportunity]:
    """Score every opportunity in input order."""
    return [score_opportunity(opportunity, settings, now) for opportunity in opportunities]
