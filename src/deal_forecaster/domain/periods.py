"""Forecast period → half-open calendar date range.

Shared by the forecast, rep-performance and scenario entry points so every
view of a period covers exactly the same days.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum

from ..exceptions import InvalidDateRangeError, InvalidPeriodError


class ForecastPeriod(StrEnum):
    """Named forecast windows in the local calendar."""

    CURRENT_MONTH = "current_month"
    NEXT_MONTH = "next_month"
    CURRENT_QUARTER = "current_quarter"
    NEXT_QUARTER = "next_quarter"
    CURRENT_YEAR = "current_year"
    NEXT_YEAR = "next_year"


@dataclass(frozen=True)
class PeriodRange:
    """Half-open ``[start, end_exclusive)`` range of calendar dates."""

    start: date
    end_exclusive: date
    period: ForecastPeriod | None = None

    @property
    def end(self) -> date:
        """Inclusive last day, for display."""
        return self.end_exclusive - timedelta(days=1)

    @property
    def is_custom(self) -> bool:
        return self.period is None

    def contains(self, value: date) -> bool:
        return self.start <= value < self.end_exclusive


def _month_start(year: int, month_index: int) -> date:
    """First day of a zero-based month index that may overflow into later years."""
    year_offset, month = divmod(month_index, 12)
    return date(year + year_offset, month + 1, 1)


def parse_period(value: str | ForecastPeriod) -> ForecastPeriod:
    """Parse a period name, rejecting anything outside the closed set."""
    try:
        return ForecastPeriod(str(value).strip().lower())
    except ValueError as exc:
        allowed = tuple(member.value for member in ForecastPeriod)
        raise InvalidPeriodError(str(value), allowed) from exc


def period_range(period: ForecastPeriod, today: date) -> PeriodRange:
    """Return the date range a named period covers relative to ``today``."""
    month_index = today.month - 1
    quarter_start = (month_index // 3) * 3
    match period:
        case ForecastPeriod.CURRENT_MONTH:
            start_index, end_index = month_index, month_index + 1
        case ForecastPeriod.NEXT_MONTH:
            start_index, end_index = month_index + 1, month_index + 2
        case ForecastPeriod.CURRENT_QUARTER:
            start_index, end_index = quarter_start, quarter_start + 3
        case ForecastPeriod.NEXT_QUARTER:
            start_index, end_index = quarter_start + 3, quarter_start + 6
        case ForecastPeriod.CURRENT_YEAR:
            start_index, end_index = 0, 12
        case ForecastPeriod.NEXT_YEAR:
            start_index, end_index = 12, 24
    return PeriodRange(
        start=_month_start(today.year, start_index),
        end_exclusive=_month_start(today.year, end_index),
        period=period,
    )


def custom_range(start: date, end: date) -> PeriodRange:
    """Build a range from an inclusive ``[start, end]`` pair."""
    if end < start:
        raise InvalidDateRangeError(start.isoformat(), end.isoformat())
    return PeriodRange(start=start, end_exclusive=end + timedelta(days=1))


def resolve_period_range(
    period: str | ForecastPeriod,
    today: date,
    *,
    start: date | None = None,
    end: date | None = None,
) -> PeriodRange:
    """Resolve a request's range; a complete custom pair overrides the period."""
    if start is not None and end is not None:
        return custom_range(start, end)
    return period_range(parse_period(period), today)
