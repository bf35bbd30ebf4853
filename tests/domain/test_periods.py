"""Tests for forecast period → date range resolution."""

from datetime import date

import pytest

from deal_forecaster.domain.periods import (
    ForecastPeriod,
    PeriodRange,
    custom_range,
    parse_period,
    period_range,
    resolve_period_range,
)
from deal_forecaster.exceptions import InvalidDateRangeError, InvalidPeriodError


@pytest.mark.parametrize(
    ("period", "today", "start", "end_exclusive"),
    [
        (ForecastPeriod.CURRENT_MONTH, date(2026, 5, 15), date(2026, 5, 1), date(2026, 6, 1)),
        (ForecastPeriod.NEXT_MONTH, date(2026, 12, 3), date(2027, 1, 1), date(2027, 2, 1)),
        (ForecastPeriod.CURRENT_QUARTER, date(2026, 5, 15), date(2026, 4, 1), date(2026, 7, 1)),
        (ForecastPeriod.NEXT_QUARTER, date(2026, 11, 30), date(2027, 1, 1), date(2027, 4, 1)),
        (ForecastPeriod.CURRENT_YEAR, date(2026, 2, 1), date(2026, 1, 1), date(2027, 1, 1)),
        (ForecastPeriod.NEXT_YEAR, date(2026, 2, 1), date(2027, 1, 1), date(2028, 1, 1)),
    ],
)
def test_period_range_is_half_open(
    period: ForecastPeriod, today: date, start: date, end_exclusive: date
) -> None:
    resolved = period_range(period, today)

    assert resolved == PeriodRange(start=start, end_exclusive=end_exclusive, period=period)
    assert resolved.contains(start)
    assert not resolved.contains(end_exclusive)


def test_display_end_is_inclusive_last_day() -> None:
    resolved = period_range(ForecastPeriod.CURRENT_QUARTER, date(2026, 2, 10))

    assert resolved.end == date(2026, 3, 31)


def test_custom_range_converts_inclusive_end() -> None:
    resolved = custom_range(date(2026, 5, 1), date(2026, 5, 31))

    assert resolved.end_exclusive == date(2026, 6, 1)
    assert resolved.contains(date(2026, 5, 31))
    assert resolved.is_custom


def test_custom_range_single_day() -> None:
    resolved = custom_range(date(2026, 5, 1), date(2026, 5, 1))

    assert resolved.contains(date(2026, 5, 1))
    assert not resolved.contains(date(2026, 5, 2))


def test_custom_range_rejects_reversed_dates() -> None:
    with pytest.raises(InvalidDateRangeError):
        custom_range(date(2026, 5, 2), date(2026, 5, 1))


def test_resolve_prefers_complete_custom_pair() -> None:
    today = date(2026, 5, 15)

    custom = resolve_period_range(
        "current_month", today, start=date(2026, 1, 1), end=date(2026, 1, 31)
    )
    named = resolve_period_range("current_month", today, start=date(2026, 1, 1))

    assert custom.start == date(2026, 1, 1)
    assert custom.period is None
    assert named.period is ForecastPeriod.CURRENT_MONTH


def test_parse_period_accepts_case_and_whitespace() -> None:
    assert parse_period(" Next_Quarter ") is ForecastPeriod.NEXT_QUARTER


def test_parse_period_rejects_unknown_names() -> None:
    with pytest.raises(InvalidPeriodError) as exc_info:
        parse_period("fortnight")

    assert "current_quarter" in str(exc_info.value)
