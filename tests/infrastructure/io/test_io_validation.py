"""Tests for inbound CRM payload validation."""

from __future__ import annotations

import re
from datetime import date

import pytest

from deal_forecaster.domain.opportunity import ScenarioAdjustment
from deal_forecaster.domain.stages import UNKNOWN_STAGE
from deal_forecaster.exceptions import AdjustmentsValidationError
from deal_forecaster.infrastructure.io.validation import (
    IncomingDataError,
    parse_account_dates,
    parse_date,
    parse_opportunity_record,
    parse_owner_names,
    parse_scenario_adjustments,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2026-03-04", date(2026, 3, 4)),
        ("2026-03-04T23:30:00Z", date(2026, 3, 4)),
        ("2026-03-04T08:00:00+02:00", date(2026, 3, 4)),
        (" 2026-03-04 ", date(2026, 3, 4)),
        ("", None),
        ("next tuesday", None),
        (20260304, None),
        (None, None),
    ],
)
def test_parse_date(value: object, expected: date | None) -> None:
    assert parse_date(value) == expected


def test_parse_opportunity_record_maps_camel_case_fields() -> None:
    payload: dict[str, object] = {
        "id": "D-9",
        "title": " Expansion ",
        "amount": 1500,
        "stage": " Proposal ",
        "ownerId": "u-2",
        "forecastedCloseDate": "2026-06-01",
        "closeDate": "2026-07-01",
        "createdAt": "2026-01-10T12:00:00Z",
        "lastActivityAt": "not a date",
        "daysInStage": 12.7,
        "accountId": "A-7",
    }

    opportunity = parse_opportunity_record(payload, {"A-7": date(2023, 2, 1)})

    assert opportunity.id == "D-9"
    assert opportunity.title == "Expansion"
    assert opportunity.stage == "Proposal"
    assert opportunity.amount == 1500.0
    assert opportunity.effective_close_date == date(2026, 6, 1)
    assert opportunity.created_at == date(2026, 1, 10)
    assert opportunity.last_activity_at is None
    assert opportunity.days_in_stage == 12
    assert opportunity.account_created_at == date(2023, 2, 1)


def test_parse_opportunity_record_defaults() -> None:
    opportunity = parse_opportunity_record({"_id": 42})

    assert opportunity.id == "42"
    assert opportunity.amount == 0.0
    assert opportunity.stage == UNKNOWN_STAGE
    assert opportunity.owner_id is None
    assert opportunity.days_in_stage is None


@pytest.mark.parametrize(
    "payload",
    [
        {"amount": 100, "stage": "Lead"},
        {"id": "", "amount": 100},
        {"id": "D-1", "amount": "100"},
        {"id": "D-1", "amount": -5},
        {"id": "D-1", "amount": True},
        {"id": "D-1", "amount": float("nan")},
        "not a record",
    ],
)
def test_parse_opportunity_record_rejects_unusable_records(payload: object) -> None:
    with pytest.raises(IncomingDataError):
        parse_opportunity_record(payload)


def test_negative_days_in_stage_is_ignored() -> None:
    opportunity = parse_opportunity_record({"id": "D-1", "daysInStage": -3})

    assert opportunity.days_in_stage is None


def test_parse_account_dates_and_owner_names() -> None:
    accounts = parse_account_dates(
        [{"id": "A-1", "createdAt": "2024-01-01"}, {"_id": "A-2"}, {"createdAt": "2024-02-02"}]
    )
    owners = parse_owner_names(
        [{"id": "u-1", "displayName": "Dana Smith"}, {"_id": "u-2", "name": "Lee"}, {"id": "u-3"}]
    )

    assert accounts == {"A-1": date(2024, 1, 1)}
    assert owners == {"u-1": "Dana Smith", "u-2": "Lee"}


def test_parse_scenario_adjustments() -> None:
    adjustments = parse_scenario_adjustments(
        [
            {"opportunityId": "D-1", "newStage": "Closed Won"},
            {"dealId": "D-2", "newValue": 0, "newCloseDate": "2026-08-01"},
        ]
    )

    assert adjustments == [
        ScenarioAdjustment(opportunity_id="D-1", new_stage="Closed Won"),
        ScenarioAdjustment(opportunity_id="D-2", new_value=0.0, new_close_date=date(2026, 8, 1)),
    ]


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"opportunityId": "D-1"}, "expected a list"),
        ([{"newStage": "Lead"}], "[0] opportunityId is required"),
        ([{"opportunityId": "D-1", "newStage": "  "}], "[0] newStage"),
        ([{"opportunityId": "D-1", "newValue": -1}], "[0] newValue"),
        ([{"opportunityId": "D-1", "newValue": "10"}], "[0] newValue"),
        (
            [{"opportunityId": "D-1"}, {"opportunityId": "D-2", "newCloseDate": "soon"}],
            "[1] newCloseDate",
        ),
    ],
)
def test_parse_scenario_adjustments_rejects_malformed(payload: object, message: str) -> None:
    with pytest.raises(AdjustmentsValidationError, match=re.escape(message)):
        parse_scenario_adjustments(payload)
