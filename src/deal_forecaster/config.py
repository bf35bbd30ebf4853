"""Centralised, injectable configuration for the deal forecasting engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import EngineConfigFile
from .domain.periods import ForecastPeriod, parse_period
from .domain.risk import DEFAULT_AT_RISK_LIMIT

DEFAULT_SETTINGS_PATH = "data/settings/scoring_settings.json"
DEFAULT_CRM_DATA_PATH = "data/crm/crm_data.json"


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class BooleanEnvVarError(ValueError):
    """Raised when an environment variable must be a supported boolean."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a boolean value (true/false, 1/0, yes/no, on/off).")


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration object for all engine entry points.

    Load from environment with `EngineConfig.from_env()` or construct directly for testing.
    """

    # Storage
    settings_path: str = DEFAULT_SETTINGS_PATH
    crm_data_path: str = DEFAULT_CRM_DATA_PATH

    # Forecast defaults
    default_period: ForecastPeriod = ForecastPeriod.CURRENT_QUARTER
    at_risk_limit: int = DEFAULT_AT_RISK_LIMIT
    exclude_overdue: bool = False

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            EngineConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            settings_path=os.getenv("FORECAST_SETTINGS_PATH", DEFAULT_SETTINGS_PATH).strip()
            or DEFAULT_SETTINGS_PATH,
            crm_data_path=os.getenv("FORECAST_CRM_DATA_PATH", DEFAULT_CRM_DATA_PATH).strip()
            or DEFAULT_CRM_DATA_PATH,
            default_period=parse_period(
                os.getenv("FORECAST_DEFAULT_PERIOD", "").strip()
                or ForecastPeriod.CURRENT_QUARTER.value
            ),
            at_risk_limit=_parse_optional_positive_int(
                os.getenv("FORECAST_AT_RISK_LIMIT", ""),
                env_name="FORECAST_AT_RISK_LIMIT",
            )
            or DEFAULT_AT_RISK_LIMIT,
            exclude_overdue=_parse_optional_bool(
                os.getenv("FORECAST_EXCLUDE_OVERDUE", ""),
                env_name="FORECAST_EXCLUDE_OVERDUE",
            )
            or False,
        )

    def with_overrides(
        self,
        *,
        settings_path: str | None = None,
        crm_data_path: str | None = None,
        default_period: str | None = None,
        at_risk_limit: int | None = None,
        exclude_overdue: bool | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            settings_path=self.settings_path if settings_path is None else settings_path.strip(),
            crm_data_path=self.crm_data_path if crm_data_path is None else crm_data_path.strip(),
            default_period=self.default_period
            if default_period is None
            else parse_period(default_period),
            at_risk_limit=self.at_risk_limit if at_risk_limit is None else at_risk_limit,
            exclude_overdue=self.exclude_overdue if exclude_overdue is None else exclude_overdue,
        )

    def with_file_overrides(self, file_config: EngineConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            settings_path=self.settings_path
            if file_config.settings_path is None
            else file_config.settings_path,
            crm_data_path=self.crm_data_path
            if file_config.crm_data_path is None
            else file_config.crm_data_path,
            default_period=self.default_period
            if file_config.default_period is None
            else parse_period(file_config.default_period),
            at_risk_limit=self.at_risk_limit
            if file_config.at_risk_limit is None
            else file_config.at_risk_limit,
            exclude_overdue=self.exclude_overdue
            if file_config.exclude_overdue is None
            else file_config.exclude_overdue,
        )


def _parse_optional_positive_int(value: str, *, env_name: str) -> int | None:
    """Parse an optional positive integer from an environment variable."""
    text = value.strip()
    if not text:
        return None
    try:
        parsed = int(text)
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_optional_bool(value: str, *, env_name: str) -> bool | None:
    """Parse an optional boolean from an environment variable."""
    text = value.strip().lower()
    if not text:
        return None
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    raise BooleanEnvVarError(env_name)
