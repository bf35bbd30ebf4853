"""Typed parsing and validation for engine config files.

Example ``forecast.toml``::

    schema_version = 1

    [engine]
    settings_path = "data/settings/scoring_settings.json"
    crm_data_path = "data/crm/crm_data.json"
    default_period = "next_quarter"
    at_risk_limit = 10
    exclude_overdue = true
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .domain.periods import ForecastPeriod
from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError
from .protocols import FileSystem

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class EngineConfigFile:
    """Validated engine config values loaded from a TOML file."""

    settings_path: str | None = None
    crm_data_path: str | None = None
    default_period: str | None = None
    at_risk_limit: int | None = None
    exclude_overdue: bool | None = None


class _EngineSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    settings_path: str | None = None
    crm_data_path: str | None = None
    default_period: str | None = None
    at_risk_limit: int | None = None
    exclude_overdue: bool | None = None

    @field_validator("settings_path", "crm_data_path")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("default_period")
    @classmethod
    def _validate_period(cls, value: str | None) -> str | None:
        if value is None:
            return None
        period = value.strip().lower()
        if period not in {member.value for member in ForecastPeriod}:
            raise ValueError("unknown forecast period")
        return period

    @field_validator("at_risk_limit")
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError("must be a positive integer")
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    engine: _EngineSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError("unsupported schema version")
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_engine_config_file(*, path: Path, fs: FileSystem) -> EngineConfigFile:
    """Load and validate an engine TOML config file."""
    if not fs.exists(path):
        raise ConfigFileNotFoundError(str(path))

    raw_payload = fs.read_text(path)
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.engine
    return EngineConfigFile(
        settings_path=section.settings_path,
        crm_data_path=section.crm_data_path,
        default_period=section.default_period,
        at_risk_limit=section.at_risk_limit,
        exclude_overdue=section.exclude_overdue,
    )
