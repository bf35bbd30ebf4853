"""Pydantic-based validation helpers for inbound CRM payloads.

Record-level problems are handled leniently: unparseable dates become ``None``
so only the dependent scoring factor is skipped. Records that cannot be used at
all (no ID, unusable amount) raise ``IncomingDataError`` for the caller to skip.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import TypeVar

from typing_extensions import TypedDict

from pydantic import TypeAdapter, ValidationError

from ...domain.opportunity import Opportunity, ScenarioAdjustment
from ...domain.stages import normalise_stage
from ...exceptions import AdjustmentsValidationError


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


class OpportunityRecordInput(TypedDict, total=False):
    id: object
    _id: object
    title: object
    amount: object
    stage: object
    ownerId: object
    forecastedCloseDate: object
    closeDate: object
    createdAt: object
    lastActivityAt: object
    daysInStage: object
    stageChangedAt: object
    accountId: object
    accountCreatedAt: object


class AccountRecordInput(TypedDict, total=False):
    id: object
    _id: object
    createdAt: object


class OwnerRecordInput(TypedDict, total=False):
    id: object
    _id: object
    displayName: object
    name: object


class CrmDataInput(TypedDict, total=False):
    opportunities: list[object]
    accounts: list[object]
    owners: list[object]


class ScenarioAdjustmentInput(TypedDict, total=False):
    opportunityId: object
    dealId: object
    newStage: object
    newValue: object
    newCloseDate: object


SchemaT = TypeVar("SchemaT")


def validate_as(schema: type[SchemaT], payload: object) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as exc:
        message = f"Invalid payload for {schema}."
        raise IncomingDataError(message) from exc


def _as_str(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return ""


def _as_optional_str(value: object) -> str | None:
    return _as_str(value) or None


def parse_date(value: object) -> date | None:
    """Parse an ISO date or timestamp to a calendar date; anything else is None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _as_finite_number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def _as_days(value: object) -> int | None:
    number = _as_finite_number(value)
    if number is None or number < 0:
        return None
    return int(number)


def parse_opportunity_record(
    payload: object,
    account_created: dict[str, date] | None = None,
) -> Opportunity:
    """Convert one raw opportunity record into an ``Opportunity``.

    Args:
        payload: Raw record (camelCase keys as exported by the CRM).
        account_created: Optional account ID → creation date lookup used when the
            record does not carry ``accountCreatedAt`` itself.
    """
    record = validate_as(OpportunityRecordInput, payload)
    opportunity_id = _as_str(record.get("id")) or _as_str(record.get("_id"))
    if not opportunity_id:
        raise IncomingDataError("Opportunity record has no id.")

    raw_amount = record.get("amount")
    amount = 0.0 if raw_amount is None else _as_finite_number(raw_amount)
    if amount is None or amount < 0:
        raise IncomingDataError(f"Opportunity {opportunity_id} has an invalid amount.")

    account_id = _as_optional_str(record.get("accountId"))
    account_created_at = parse_date(record.get("accountCreatedAt"))
    if account_created_at is None and account_id and account_created:
        account_created_at = account_created.get(account_id)

    return Opportunity(
        id=opportunity_id,
        amount=amount,
        stage=normalise_stage(_as_str(record.get("stage"))),
        owner_id=_as_optional_str(record.get("ownerId")),
        title=_as_str(record.get("title")),
        forecasted_close_date=parse_date(record.get("forecastedCloseDate")),
        close_date=parse_date(record.get("closeDate")),
        created_at=parse_date(record.get("createdAt")),
        last_activity_at=parse_date(record.get("lastActivityAt")),
        days_in_stage=_as_days(record.get("daysInStage")),
        stage_changed_at=parse_date(record.get("stageChangedAt")),
        account_id=account_id,
        account_created_at=account_created_at,
    )


def parse_account_dates(payload: object) -> dict[str, date]:
    accounts = validate_as(list[AccountRecordInput], payload)
    created: dict[str, date] = {}
    for account in accounts:
        account_id = _as_str(account.get("id")) or _as_str(account.get("_id"))
        created_at = parse_date(account.get("createdAt"))
        if account_id and created_at is not None:
            created[account_id] = created_at
    return created


def parse_owner_names(payload: object) -> dict[str, str]:
    owners = validate_as(list[OwnerRecordInput], payload)
    names: dict[str, str] = {}
    for owner in owners:
        owner_id = _as_str(owner.get("id")) or _as_str(owner.get("_id"))
        name = _as_str(owner.get("displayName")) or _as_str(owner.get("name"))
        if owner_id and name:
            names[owner_id] = name
    return names


def parse_crm_data(payload: object) -> CrmDataInput:
    return validate_as(CrmDataInput, payload)


def parse_scenario_adjustments(payload: object) -> list[ScenarioAdjustment]:
    """Parse a list of adjustments, failing fast on malformed entries."""
    try:
        raw_items = validate_as(list[ScenarioAdjustmentInput], payload)
    except IncomingDataError as exc:
        raise AdjustmentsValidationError("expected a list of adjustment objects") from exc

    adjustments: list[ScenarioAdjustment] = []
    for index, item in enumerate(raw_items):
        opportunity_id = _as_str(item.get("opportunityId")) or _as_str(item.get("dealId"))
        if not opportunity_id:
            raise AdjustmentsValidationError(f"[{index}] opportunityId is required")

        new_stage: str | None = None
        if item.get("newStage") is not None:
            new_stage = _as_str(item.get("newStage"))
            if not new_stage:
                raise AdjustmentsValidationError(f"[{index}] newStage must be a non-empty string")

        new_value: float | None = None
        if item.get("newValue") is not None:
            new_value = _as_finite_number(item.get("newValue"))
            if new_value is None or new_value < 0:
                raise AdjustmentsValidationError(
                    f"[{index}] newValue must be a non-negative number"
                )

        new_close_date: date | None = None
        if item.get("newCloseDate") is not None:
            new_close_date = parse_date(item.get("newCloseDate"))
            if new_close_date is None:
                raise AdjustmentsValidationError(f"[{index}] newCloseDate must be an ISO date")

        adjustments.append(
            ScenarioAdjustment(
                opportunity_id=opportunity_id,
                new_stage=new_stage,
                new_value=new_value,
                new_close_date=new_close_date,
            )
        )
    return adjustments
