"""Score → confidence tier mapping.

This is the single source of truth for hot/warm/cold deal colouring as well as
the forecast bucket a deal falls into.
"""

from __future__ import annotations

from enum import StrEnum

HIGH_CONFIDENCE_MIN_SCORE = 70
MEDIUM_CONFIDENCE_MIN_SCORE = 40


class Confidence(StrEnum):
    """Discrete likelihood tiers."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


_SCORE_BANDS = {
    Confidence.HIGH: "hot",
    Confidence.MEDIUM: "warm",
    Confidence.LOW: "cold",
}


def classify_confidence(score: float) -> Confidence:
    """Map a 0–100 score to its confidence tier."""
    if score >= HIGH_CONFIDENCE_MIN_SCORE:
        return Confidence.HIGH
    if score >= MEDIUM_CONFIDENCE_MIN_SCORE:
        return Confidence.MEDIUM
    return Confidence.LOW


def score_band(score: float) -> str:
    """Colour band label (``hot``/``warm``/``cold``) for a score."""
    return _SCORE_BANDS[classify_confidence(score)]
