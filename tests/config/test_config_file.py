"""Tests for config-file schema parsing and fail-fast validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from deal_forecaster.config_file import load_engine_config_file
from deal_forecaster.exceptions import (
    ConfigFileNotFoundError,
    ConfigFileParseError,
    ConfigFileValidationError,
)
from tests.fakes import InMemoryFileSystem


def _write(fs: InMemoryFileSystem, path: Path, content: str) -> None:
    fs.write_text(content, path)


def test_load_engine_config_file_parses_valid_toml() -> None:
    fs = InMemoryFileSystem()
    path = Path("config/forecast.toml")
    _write(
        fs,
        path,
        """
schema_version = 1

[engine]
settings_path = " data/settings/custom.json "
crm_data_path = "exports/crm.json"
default_period = "Next_Quarter"
at_risk_limit = 10
exclude_overdue = true
""".strip(),
    )

    parsed = load_engine_config_file(path=path, fs=fs)

    assert parsed.settings_path == "data/settings/custom.json"
    assert parsed.crm_data_path == "exports/crm.json"
    assert parsed.default_period == "next_quarter"
    assert parsed.at_risk_limit == 10
    assert parsed.exclude_overdue is True


def test_load_engine_config_file_allows_empty_engine_table() -> None:
    fs = InMemoryFileSystem()
    path = Path("config/forecast.toml")
    _write(fs, path, "schema_version = 1\n[engine]\n")

    parsed = load_engine_config_file(path=path, fs=fs)

    assert parsed.settings_path is None
    assert parsed.default_period is None
    assert parsed.exclude_overdue is None


def test_load_engine_config_file_fails_when_file_missing() -> None:
    fs = InMemoryFileSystem()

    with pytest.raises(ConfigFileNotFoundError):
        load_engine_config_file(path=Path("missing.toml"), fs=fs)


def test_load_engine_config_file_fails_on_invalid_toml() -> None:
    fs = InMemoryFileSystem()
    path = Path("config/forecast.toml")
    _write(fs, path, "schema_version = \n[engine")

    with pytest.raises(ConfigFileParseError):
        load_engine_config_file(path=path, fs=fs)


@pytest.mark.parametrize(
    ("content", "location"),
    [
        ("schema_version = 2\n[engine]\n", "schema_version"),
        ("[engine]\n", "schema_version"),
        ("schema_version = 1\n", "engine"),
        ('schema_version = 1\n[engine]\nunknown_key = "x"\n', "engine.unknown_key"),
        ('schema_version = 1\n[engine]\ncrm_data_path = "  "\n', "engine.crm_data_path"),
        ('schema_version = 1\n[engine]\ndefault_period = "fortnight"\n', "engine.default_period"),
        ("schema_version = 1\n[engine]\nat_risk_limit = 0\n", "engine.at_risk_limit"),
    ],
)
def test_load_engine_config_file_rejects_invalid_values(content: str, location: str) -> None:
    fs = InMemoryFileSystem()
    path = Path("config/forecast.toml")
    _write(fs, path, content)

    with pytest.raises(ConfigFileValidationError, match=location):
        load_engine_config_file(path=path, fs=fs)
