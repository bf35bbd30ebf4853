"""Custom exceptions for the deal forecasting engine.

These exceptions provide clear error handling and enable testing of error paths.
"""

from __future__ import annotations


class ForecastEngineError(Exception):
    """Base exception for all engine errors."""

    pass


class SettingsValidationError(ForecastEngineError, ValueError):
    """Raised when a scoring settings document fails validation.

    Nothing is persisted when this is raised.
    """

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"Invalid scoring settings ({source}): {detail}")


class SettingsParseError(ForecastEngineError):
    """Raised when a persisted settings document is not valid JSON."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Could not parse scoring settings at {path}: {detail}")


class CrmDataFileNotFoundError(ForecastEngineError):
    """Raised when the CRM data file backing the opportunity source is missing."""

    def __init__(self, path: str) -> None:
        super().__init__(
            f"CRM data file not found: {path}\n"
            "Set FORECAST_CRM_DATA_PATH or pass --data to point at an export."
        )


class CrmDataParseError(ForecastEngineError):
    """Raised when the CRM data file is not valid JSON or has the wrong shape."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Could not parse CRM data at {path}: {detail}")


class OpportunityNotFoundError(ForecastEngineError):
    """Raised when a single opportunity lookup finds nothing."""

    def __init__(self, opportunity_id: str) -> None:
        self.opportunity_id = opportunity_id
        super().__init__(f"Opportunity not found: {opportunity_id}")


class InvalidPeriodError(ForecastEngineError, ValueError):
    """Raised when a forecast period name is not recognised."""

    def __init__(self, period: str, allowed: tuple[str, ...]) -> None:
        super().__init__(
            f"Unknown forecast period '{period}'. Expected one of: {', '.join(allowed)}."
        )


class InvalidDateRangeError(ForecastEngineError, ValueError):
    """Raised when a custom date range ends before it starts."""

    def __init__(self, start: str, end: str) -> None:
        super().__init__(f"Custom range end {end} is before start {start}.")


class AdjustmentsValidationError(ForecastEngineError, ValueError):
    """Raised when scenario adjustments are malformed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid scenario adjustments: {detail}")


class ConfigFileNotFoundError(ForecastEngineError):
    """Raised when an explicitly requested config file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(ForecastEngineError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Could not parse config file {path}: {detail}")


class ConfigFileValidationError(ForecastEngineError):
    """Raised when a config file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid config file {path}: {detail}")
