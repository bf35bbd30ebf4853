"""Domain model for the tunable scoring configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

SETTINGS_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class DealAgeThresholds:
    """Penalties for deals open longer than each tier."""

    warn_days: int
    aging_days: int
    stale_days: int
    warn_impact: int
    aging_impact: int
    stale_impact: int


@dataclass(frozen=True)
class ActivityThresholds:
    """Recency buckets for the last recorded activity."""

    hot_days: int
    warm_days: int
    cool_days: int
    cold_days: int
    hot_impact: int
    warm_impact: int
    cool_impact: int
    cold_impact: int


@dataclass(frozen=True)
class AccountThresholds:
    """Account maturity bands."""

    mature_days: int
    new_days: int
    mature_impact: int
    new_impact: int


@dataclass(frozen=True)
class StageDurationThresholds:
    """Penalties for deals sitting in one stage."""

    warn_days: int
    stuck_days: int
    warn_impact: int
    stuck_impact: int


@dataclass(frozen=True)
class CloseDateThresholds:
    """Close-date proximity windows."""

    overdue_impact: int
    closing_soon_days: int
    closing_soon_impact: int
    closing_soon_warm_days: int
    closing_soon_warm_impact: int


@dataclass(frozen=True)
class StalePanelThresholds:
    """Flagging thresholds for the at-risk panel; never used for scoring."""

    no_activity_days: int
    stuck_in_stage_days: int


@dataclass(frozen=True)
class ScoringSettings:
    """A complete, version-tagged scoring configuration."""

    schema_version: int
    stage_weights: MappingProxyType[str, float]
    deal_age: DealAgeThresholds
    activity: ActivityThresholds
    account: AccountThresholds
    stage_duration: StageDurationThresholds
    close_date: CloseDateThresholds
    stale_panel: StalePanelThresholds

    def stage_weight(self, stage: str) -> float:
        """Weight for a stage label; unknown labels are neutral."""
        return self.stage_weights.get(stage.strip(), 0.0)


_DEFAULT_STAGE_WEIGHTS: Mapping[str, float] = {
    "new": -10,
    "Draft / Deal Created": -10,
    "Lead": -10,
    "Qualified": 0,
    "Initial Validation": 2,
    "Manager Approval": 4,
    "Finance Approval": 6,
    "Legal Review": 8,
    "Executive Approval": 10,
    "Sent for Signature": 14,
    "Proposal": 10,
    "Negotiation": 15,
    "Submitted for Review": 6,
    "Approved / Ready for Signature": 12,
    "Contract Signed / Closed Won": 0,
    "Closed Won": 0,
    "Closed Lost": 0,
}


def default_scoring_settings() -> ScoringSettings:
    """Return the recommended settings shipped with the engine."""
    return ScoringSettings(
        schema_version=SETTINGS_SCHEMA_VERSION,
        stage_weights=MappingProxyType(dict(_DEFAULT_STAGE_WEIGHTS)),
        deal_age=DealAgeThresholds(
            warn_days=60,
            aging_days=90,
            stale_days=180,
            warn_impact=-3,
            aging_impact=-8,
            stale_impact=-15,
        ),
        activity=ActivityThresholds(
            hot_days=7,
            warm_days=14,
            cool_days=21,
            cold_days=30,
            hot_impact=10,
            warm_impact=5,
            cool_impact=-6,
            cold_impact=-12,
        ),
        account=AccountThresholds(mature_days=365, new_days=30, mature_impact=8, new_impact=-5),
        stage_duration=StageDurationThresholds(
            warn_days=30, stuck_days=60, warn_impact=-5, stuck_impact=-10
        ),
        close_date=CloseDateThresholds(
            overdue_impact=-20,
            closing_soon_days=14,
            closing_soon_impact=12,
            closing_soon_warm_days=30,
            closing_soon_warm_impact=8,
        ),
        stale_panel=StalePanelThresholds(no_activity_days=30, stuck_in_stage_days=60),
    )


def settings_to_document(settings: ScoringSettings) -> dict[str, object]:
    """Serialise settings to the camelCase document persisted and returned to callers."""
    deal_age = settings.deal_age
    activity = settings.activity
    account = settings.account
    stage_duration = settings.stage_duration
    close_date = settings.close_date
    stale_panel = settings.stale_panel
    return {
        "schemaVersion": settings.schema_version,
        "stageWeights": dict(settings.stage_weights),
        "dealAge": {
            "warnDays": deal_age.warn_days,
            "agingDays": deal_age.aging_days,
            "staleDays": deal_age.stale_days,
            "warnImpact": deal_age.warn_impact,
            "agingImpact": deal_age.aging_impact,
            "staleImpact": deal_age.stale_impact,
        },
        "activity": {
            "hotDays": activity.hot_days,
            "warmDays": activity.warm_days,
            "coolDays": activity.cool_days,
            "coldDays": activity.cold_days,
            "hotImpact": activity.hot_impact,
            "warmImpact": activity.warm_impact,
            "coolImpact": activity.cool_impact,
            "coldImpact": activity.cold_impact,
        },
        "account": {
            "matureDays": account.mature_days,
            "newDays": account.new_days,
            "matureImpact": account.mature_impact,
            "newImpact": account.new_impact,
        },
        "stageDuration": {
            "warnDays": stage_duration.warn_days,
            "stuckDays": stage_duration.stuck_days,
            "warnImpact": stage_duration.warn_impact,
            "stuckImpact": stage_duration.stuck_impact,
        },
        "closeDate": {
            "overdueImpact": close_date.overdue_impact,
            "closingSoonDays": close_date.closing_soon_days,
            "closingSoonImpact": close_date.closing_soon_impact,
            "closingSoonWarmDays": close_date.closing_soon_warm_days,
            "closingSoonWarmImpact": close_date.closing_soon_warm_impact,
        },
        "stalePanel": {
            "noActivityDays": stale_panel.no_activity_days,
            "stuckInStageDays": stale_panel.stuck_in_stage_days,
        },
    }
