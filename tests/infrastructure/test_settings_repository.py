"""Tests for the JSON-file settings repository."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from deal_forecaster.exceptions import SettingsParseError
from deal_forecaster.infrastructure import JsonFileSettingsRepository
from tests.fakes import InMemoryFileSystem

SETTINGS_PATH = Path("data/settings/scoring_settings.json")


def test_read_returns_none_when_missing(in_memory_fs: InMemoryFileSystem) -> None:
    assert JsonFileSettingsRepository(SETTINGS_PATH, in_memory_fs).read() is None


def test_write_wraps_document_in_envelope(in_memory_fs: InMemoryFileSystem) -> None:
    repository = JsonFileSettingsRepository(SETTINGS_PATH, in_memory_fs)

    repository.write({"schemaVersion": 1})

    envelope = json.loads(in_memory_fs.read_text(SETTINGS_PATH))
    assert envelope["settings"] == {"schemaVersion": 1}
    assert envelope["updatedAt"].endswith("+00:00")
    assert repository.read() == {"schemaVersion": 1}


def test_read_accepts_bare_document(in_memory_fs: InMemoryFileSystem) -> None:
    in_memory_fs.write_json({"schemaVersion": 1}, SETTINGS_PATH)

    assert JsonFileSettingsRepository(SETTINGS_PATH, in_memory_fs).read() == {"schemaVersion": 1}


def test_read_raises_on_invalid_json(in_memory_fs: InMemoryFileSystem) -> None:
    in_memory_fs.write_text("{not json", SETTINGS_PATH)

    with pytest.raises(SettingsParseError, match="scoring_settings.json"):
        JsonFileSettingsRepository(SETTINGS_PATH, in_memory_fs).read()
