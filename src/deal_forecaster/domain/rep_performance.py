"""Per-owner performance table (leaderboard)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .opportunity import Opportunity
from .scoring import ScoredOpportunity
from .stages import StageOutcome, stage_outcome

UNASSIGNED_OWNER = "Unassigned"


@dataclass(frozen=True)
class RepPerformance:
    """Outcome and pipeline metrics for one owner."""

    owner_id: str
    total_deals: int
    open_deals: int
    closed_won: int
    closed_lost: int
    total_value: float
    won_value: float
    lost_value: float
    pipeline_value: float
    avg_deal_size: float
    win_rate: float
    forecasted_revenue: float
    performance_score: int


@dataclass(frozen=True)
class RepPerformanceSummary:
    total_reps: int = 0
    total_pipeline: float = 0.0
    total_won: float = 0.0
    avg_win_rate: float = 0.0


@dataclass
class _RepTally:
    total_deals: int = 0
    open_deals: int = 0
    closed_won: int = 0
    closed_lost: int = 0
    total_value: float = 0.0
    won_value: float = 0.0
    lost_value: float = 0.0
    pipeline_value: float = 0.0

    def add(self, opportunity: Opportunity) -> None:
        amount = opportunity.amount
        self.total_deals += 1
        self.total_value += amount
        outcome = stage_outcome(opportunity.stage)
        if outcome is StageOutcome.WON:
            self.closed_won += 1
            self.won_value += amount
        elif outcome is StageOutcome.LOST:
            self.closed_lost += 1
            self.lost_value += amount
        else:
            self.open_deals += 1
            self.pipeline_value += amount


def owner_key(owner_id: str | None) -> str:
    """Bucket key for an owner; blanks go to ``UNASSIGNED_OWNER``."""
    text = (owner_id or "").strip()
    return text or UNASSIGNED_OWNER


def performance_score(*, win_rate: float, avg_deal_size: float, open_deals: int) -> int:
    """Step-adjusted 0–100 score starting from 50."""
    score = 50
    if win_rate >= 50:
        score += 20
    elif win_rate >= 30:
        score += 10
    elif win_rate < 20:
        score -= 10

    if avg_deal_size > 50_000:
        score += 15
    elif avg_deal_size > 25_000:
        score += 10
    elif avg_deal_size < 10_000:
        score -= 5

    if open_deals > 10:
        score += 10
    elif open_deals > 5:
        score += 5
    elif open_deals < 3:
        score -= 10

    return max(0, min(100, score))


def _to_performance(owner_id: str, tally: _RepTally) -> RepPerformance:
    decided = tally.closed_won + tally.closed_lost
    win_rate = (tally.closed_won / decided) * 100 if decided > 0 else 0.0
    avg_deal_size = tally.total_value / tally.total_deals if tally.total_deals > 0 else 0.0
    return RepPerformance(
        owner_id=owner_id,
        total_deals=tally.total_deals,
        open_deals=tally.open_deals,
        closed_won=tally.closed_won,
        closed_lost=tally.closed_lost,
        total_value=tally.total_value,
        won_value=tally.won_value,
        lost_value=tally.lost_value,
        pipeline_value=tally.pipeline_value,
        avg_deal_size=avg_deal_size,
        win_rate=win_rate,
        forecasted_revenue=tally.won_value + tally.pipeline_value * (win_rate / 100),
        performance_score=performance_score(
            win_rate=win_rate, avg_deal_size=avg_deal_size, open_deals=tally.open_deals
        ),
    )


def compute_rep_performance(scored: Iterable[ScoredOpportunity]) -> list[RepPerformance]:
    """Group deals by owner and rank owners by forecasted revenue, highest first."""
    tallies: dict[str, _RepTally] = {}
    for deal in scored:
        key = owner_key(deal.opportunity.owner_id)
        tallies.setdefault(key, _RepTally()).add(deal.opportunity)

    reps = [_to_performance(owner_id, tally) for owner_id, tally in tallies.items()]
    reps.sort(key=lambda rep: (-rep.forecasted_revenue, rep.owner_id))
    return reps


def summarise_reps(reps: Sequence[RepPerformance]) -> RepPerformanceSummary:
    if not reps:
        return RepPerformanceSummary()
    return RepPerformanceSummary(
        total_reps=len(reps),
        total_pipeline=sum(rep.pipeline_value for rep in reps),
        total_won=sum(rep.won_value for rep in reps),
        avg_win_rate=sum(rep.win_rate for rep in reps) / len(reps),
    )
