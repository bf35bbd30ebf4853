"""Tests for the score → confidence tier mapping."""

import pytest

from deal_forecaster.domain.confidence import Confidence, classify_confidence, score_band

_TIER_RANK = {Confidence.LOW: 0, Confidence.MEDIUM: 1, Confidence.HIGH: 2}


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (100, Confidence.HIGH),
        (70, Confidence.HIGH),
        (69, Confidence.MEDIUM),
        (40, Confidence.MEDIUM),
        (39, Confidence.LOW),
        (0, Confidence.LOW),
    ],
)
def test_classify_confidence_boundaries(score: int, expected: Confidence) -> None:
    assert classify_confidence(score) is expected


def test_classify_confidence_is_monotonic() -> None:
    ranks = [_TIER_RANK[classify_confidence(score)] for score in range(101)]

    assert ranks == sorted(ranks)


def test_score_band_follows_confidence() -> None:
    assert score_band(85) == "hot"
    assert score_band(55) == "warm"
    assert score_band(12) == "cold"
