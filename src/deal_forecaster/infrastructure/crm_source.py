"""JSON-file CRM export acting as the opportunity source and owner directory.

Expected shape::

    {
        "opportunities": [{"id": "D-1", "amount": 1000, "stage": "Proposal", ...}],
        "accounts": [{"id": "A-1", "createdAt": "2024-01-01"}],
        "owners": [{"id": "u-1", "displayName": "Dana Smith"}]
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from ..domain.opportunity import Opportunity
from ..domain.rep_performance import UNASSIGNED_OWNER
from ..domain.stages import UNKNOWN_STAGE, is_known_stage
from ..exceptions import CrmDataFileNotFoundError, CrmDataParseError
from ..observability import get_logger
from ..protocols import FileSystem, OpportunityQuery, OpportunitySource, OwnerDirectory
from .io.validation import (
    IncomingDataError,
    parse_account_dates,
    parse_crm_data,
    parse_opportunity_record,
    parse_owner_names,
)


def _matches_owner(opportunity: Opportunity, owner_id: str | None) -> bool:
    if not owner_id:
        return True
    if owner_id == UNASSIGNED_OWNER:
        return not (opportunity.owner_id or "").strip()
    return opportunity.owner_id == owner_id


def _in_range(opportunity: Opportunity, start: date, end_exclusive: date) -> bool:
    close_date = opportunity.effective_close_date
    return close_date is not None and start <= close_date < end_exclusive


def load_opportunities(payload: object) -> tuple[list[Opportunity], dict[str, str]]:
    """Parse a CRM export into opportunities and owner names.

    Records that cannot be used are skipped with a warning rather than failing
    the whole load.
    """
    logger = get_logger("deal_forecaster.crm_source")
    data = parse_crm_data(payload)
    account_created = parse_account_dates(data.get("accounts", []))
    owners = parse_owner_names(data.get("owners", []))

    opportunities: list[Opportunity] = []
    skipped = 0
    for raw_record in data.get("opportunities", []):
        try:
            opportunities.append(parse_opportunity_record(raw_record, account_created))
        except IncomingDataError as exc:
            skipped += 1
            logger.warning("Skipping opportunity record: %s", exc)
    unrecognised = sorted(
        {
            opportunity.stage
            for opportunity in opportunities
            if opportunity.stage != UNKNOWN_STAGE and not is_known_stage(opportunity.stage)
        }
    )
    if unrecognised:
        logger.warning("Unrecognised stage labels score neutrally: %s", ", ".join(unrecognised))
    logger.info("Loaded %s opportunities (%s skipped)", len(opportunities), skipped)
    return opportunities, owners


@dataclass
class JsonFileCrmSource(OpportunitySource, OwnerDirectory):
    """Reads the export once on first use and serves queries from memory."""

    path: Path
    fs: FileSystem
    _opportunities: list[Opportunity] | None = field(default=None, init=False, repr=False)
    _owners: dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def _load(self) -> list[Opportunity]:
        if self._opportunities is None:
            if not self.fs.exists(self.path):
                raise CrmDataFileNotFoundError(str(self.path))
            try:
                payload = self.fs.read_json(self.path)
                self._opportunities, self._owners = load_opportunities(payload)
            except json.JSONDecodeError as exc:
                raise CrmDataParseError(str(self.path), str(exc)) from exc
            except IncomingDataError as exc:
                raise CrmDataParseError(str(self.path), "unexpected document structure") from exc
        return self._opportunities

    def list_opportunities(self, query: OpportunityQuery) -> list[Opportunity]:
        return [
            opportunity
            for opportunity in self._load()
            if _in_range(opportunity, query.start, query.end_exclusive)
            and _matches_owner(opportunity, query.owner_id)
        ]

    def get_opportunity(self, opportunity_id: str) -> Opportunity | None:
        for opportunity in self._load():
            if opportunity.id == opportunity_id:
                return opportunity
        return None

    def display_name(self, owner_id: str) -> str | None:
        self._load()
        return self._owners.get(owner_id)
