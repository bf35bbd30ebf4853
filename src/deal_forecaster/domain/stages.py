"""Pipeline stage vocabulary.

Stage is an open string on incoming records. Known labels drive won/lost
detection, the late-pipeline test used by the close-date factor, and the
default stage weights. Labels outside the vocabulary score neutrally.
"""

from __future__ import annotations

from enum import StrEnum

UNKNOWN_STAGE = "Unknown"


class KnownStage(StrEnum):
    """Stage labels the engine recognises."""

    NEW = "new"
    DRAFT = "Draft / Deal Created"
    LEAD = "Lead"
    QUALIFIED = "Qualified"
    INITIAL_VALIDATION = "Initial Validation"
    MANAGER_APPROVAL = "Manager Approval"
    FINANCE_APPROVAL = "Finance Approval"
    LEGAL_REVIEW = "Legal Review"
    EXECUTIVE_APPROVAL = "Executive Approval"
    SENT_FOR_SIGNATURE = "Sent for Signature"
    PROPOSAL = "Proposal"
    NEGOTIATION = "Negotiation"
    SUBMITTED_FOR_REVIEW = "Submitted for Review"
    READY_FOR_SIGNATURE = "Approved / Ready for Signature"
    CONTRACT_SIGNED = "Contract Signed / Closed Won"
    CLOSED_WON = "Closed Won"
    CLOSED_LOST = "Closed Lost"


class StageOutcome(StrEnum):
    """Where a stage sits relative to the end of the pipeline."""

    OPEN = "open"
    WON = "won"
    LOST = "lost"


WON_STAGES = frozenset({KnownStage.CLOSED_WON.value, KnownStage.CONTRACT_SIGNED.value})
LOST_STAGES = frozenset({KnownStage.CLOSED_LOST.value})

# Stages close enough to signature that an imminent close date is credible.
LATE_PIPELINE_STAGES = frozenset(
    {
        KnownStage.PROPOSAL.value,
        KnownStage.NEGOTIATION.value,
        KnownStage.READY_FOR_SIGNATURE.value,
        KnownStage.SENT_FOR_SIGNATURE.value,
    }
)


def normalise_stage(stage: str | None) -> str:
    """Return a trimmed stage label, bucketing blanks as ``UNKNOWN_STAGE``."""
    text = (stage or "").strip()
    return text or UNKNOWN_STAGE


def stage_outcome(stage: str) -> StageOutcome:
    """Classify a stage label as open, won or lost."""
    text = stage.strip()
    if text in WON_STAGES:
        return StageOutcome.WON
    if text in LOST_STAGES:
        return StageOutcome.LOST
    return StageOutcome.OPEN


def is_open_stage(stage: str) -> bool:
    return stage_outcome(stage) is StageOutcome.OPEN


def is_late_pipeline_stage(stage: str) -> bool:
    return stage.strip() in LATE_PIPELINE_STAGES


def is_known_stage(stage: str) -> bool:
    return stage.strip() in {member.value for member in KnownStage}
