"""Opportunity records and sparse scenario overrides."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Opportunity:
    """A sales opportunity as read from the CRM record store.

    ``forecasted_close_date`` wins over ``close_date`` when both are set.
    Optional dates are ``None`` when missing or unparseable upstream.
    """

    id: str
    amount: float
    stage: str
    owner_id: str | None = None
    title: str = ""
    forecasted_close_date: date | None = None
    close_date: date | None = None
    created_at: date | None = None
    last_activity_at: date | None = None
    days_in_stage: int | None = None
    stage_changed_at: date | None = None
    account_id: str | None = None
    account_created_at: date | None = None

    @property
    def effective_close_date(self) -> date | None:
        """Close date used for period matching, overdue checks and scoring."""
        if self.forecasted_close_date is not None:
            return self.forecasted_close_date
        return self.close_date


@dataclass(frozen=True)
class ScenarioAdjustment:
    """A hypothetical edit to one opportunity; unset fields leave it unchanged."""

    opportunity_id: str
    new_stage: str | None = None
    new_value: float | None = None
    new_close_date: date | None = None


def days_between(earlier: date, later: date) -> int:
    """Whole calendar days from ``earlier`` to ``later`` (negative if reversed)."""
    return (later - earlier).days
