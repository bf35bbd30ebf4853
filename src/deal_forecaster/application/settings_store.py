"""Validated read/write access to the scoring settings document."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Annotated

from pydantic import (
    AllowInfNan,
    BaseModel,
    ConfigDict,
    Strict,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..domain.settings import (
    SETTINGS_SCHEMA_VERSION,
    AccountThresholds,
    ActivityThresholds,
    CloseDateThresholds,
    DealAgeThresholds,
    ScoringSettings,
    StageDurationThresholds,
    StalePanelThresholds,
    default_scoring_settings,
    settings_to_document,
)
from ..exceptions import SettingsValidationError
from ..observability import get_logger
from ..protocols import SettingsRepository

StageWeight = Annotated[float, Strict(), AllowInfNan(False)]

_MODEL_CONFIG = ConfigDict(
    extra="forbid",
    frozen=True,
    alias_generator=to_camel,
)


def _non_negative(value: int) -> int:
    if value < 0:
        raise ValueError("must be a non-negative integer")
    return value


class _DealAgeModel(BaseModel):
    model_config = _MODEL_CONFIG

    warn_days: StrictInt
    aging_days: StrictInt
    stale_days: StrictInt
    warn_impact: StrictInt
    aging_impact: StrictInt
    stale_impact: StrictInt

    @field_validator("warn_days", "aging_days", "stale_days")
    @classmethod
    def _validate_days(cls, value: int) -> int:
        return _non_negative(value)

    @model_validator(mode="after")
    def _validate_order(self) -> _DealAgeModel:
        if not self.warn_days <= self.aging_days <= self.stale_days:
            raise ValueError("expected warnDays <= agingDays <= staleDays")
        return self


class _ActivityModel(BaseModel):
    model_config = _MODEL_CONFIG

    hot_days: StrictInt
    warm_days: StrictInt
    cool_days: StrictInt
    cold_days: StrictInt
    hot_impact: StrictInt
    warm_impact: StrictInt
    cool_impact: StrictInt
    cold_impact: StrictInt

    @field_validator("hot_days", "warm_days", "cool_days", "cold_days")
    @classmethod
    def _validate_days(cls, value: int) -> int:
        return _non_negative(value)

    @model_validator(mode="after")
    def _validate_order(self) -> _ActivityModel:
        if not self.hot_days <= self.warm_days <= self.cool_days <= self.cold_days:
            raise ValueError("expected hotDays <= warmDays <= coolDays <= coldDays")
        return self


class _AccountModel(BaseModel):
    model_config = _MODEL_CONFIG

    mature_days: StrictInt
    new_days: StrictInt
    mature_impact: StrictInt
    new_impact: StrictInt

    @field_validator("mature_days", "new_days")
    @classmethod
    def _validate_days(cls, value: int) -> int:
        return _non_negative(value)

    @model_validator(mode="after")
    def _validate_order(self) -> _AccountModel:
        if self.new_days > self.mature_days:
            raise ValueError("expected newDays <= matureDays")
        return self


class _StageDurationModel(BaseModel):
    model_config = _MODEL_CONFIG

    warn_days: StrictInt
    stuck_days: StrictInt
    warn_impact: StrictInt
    stuck_impact: StrictInt

    @field_validator("warn_days", "stuck_days")
    @classmethod
    def _validate_days(cls, value: int) -> int:
        return _non_negative(value)

    @model_validator(mode="after")
    def _validate_order(self) -> _StageDurationModel:
        if self.warn_days > self.stuck_days:
            raise ValueError("expected warnDays <= stuckDays")
        return self


class _CloseDateModel(BaseModel):
    model_config = _MODEL_CONFIG

    overdue_impact: StrictInt
    closing_soon_days: StrictInt
    closing_soon_impact: StrictInt
    closing_soon_warm_days: StrictInt
    closing_soon_warm_impact: StrictInt

    @field_validator("closing_soon_days", "closing_soon_warm_days")
    @classmethod
    def _validate_days(cls, value: int) -> int:
        return _non_negative(value)

    @model_validator(mode="after")
    def _validate_order(self) -> _CloseDateModel:
        if self.closing_soon_days > self.closing_soon_warm_days:
            raise ValueError("expected closingSoonDays <= closingSoonWarmDays")
        return self


class _StalePanelModel(BaseModel):
    model_config = _MODEL_CONFIG

    no_activity_days: StrictInt
    stuck_in_stage_days: StrictInt

    @field_validator("no_activity_days", "stuck_in_stage_days")
    @classmethod
    def _validate_days(cls, value: int) -> int:
        return _non_negative(value)


class _ScoringSettingsModel(BaseModel):
    model_config = _MODEL_CONFIG

    schema_version: StrictInt
    stage_weights: dict[str, StageWeight]
    deal_age: _DealAgeModel
    activity: _ActivityModel
    account: _AccountModel
    stage_duration: _StageDurationModel
    close_date: _CloseDateModel
    stale_panel: _StalePanelModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != SETTINGS_SCHEMA_VERSION:
            raise ValueError(f"unsupported schema version (expected {SETTINGS_SCHEMA_VERSION})")
        return value

    @field_validator("stage_weights")
    @classmethod
    def _validate_stage_weights(cls, value: dict[str, float]) -> dict[str, float]:
        cleaned: dict[str, float] = {}
        for key, weight in value.items():
            key_text = key.strip()
            if not key_text:
                raise ValueError("stage labels must be non-empty strings")
            if key_text in cleaned:
                raise ValueError(f"duplicate stage label '{key_text}'")
            cleaned[key_text] = weight
        return cleaned


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location or '<root>'}: {message}"


def _to_domain_settings(model: _ScoringSettingsModel) -> ScoringSettings:
    return ScoringSettings(
        schema_version=model.schema_version,
        stage_weights=MappingProxyType(dict(model.stage_weights)),
        deal_age=DealAgeThresholds(
            warn_days=model.deal_age.warn_days,
            aging_days=model.deal_age.aging_days,
            stale_days=model.deal_age.stale_days,
            warn_impact=model.deal_age.warn_impact,
            aging_impact=model.deal_age.aging_impact,
            stale_impact=model.deal_age.stale_impact,
        ),
        activity=ActivityThresholds(
            hot_days=model.activity.hot_days,
            warm_days=model.activity.warm_days,
            cool_days=model.activity.cool_days,
            cold_days=model.activity.cold_days,
            hot_impact=model.activity.hot_impact,
            warm_impact=model.activity.warm_impact,
            cool_impact=model.activity.cool_impact,
            cold_impact=model.activity.cold_impact,
        ),
        account=AccountThresholds(
            mature_days=model.account.mature_days,
            new_days=model.account.new_days,
            mature_impact=model.account.mature_impact,
            new_impact=model.account.new_impact,
        ),
        stage_duration=StageDurationThresholds(
            warn_days=model.stage_duration.warn_days,
            stuck_days=model.stage_duration.stuck_days,
            warn_impact=model.stage_duration.warn_impact,
            stuck_impact=model.stage_duration.stuck_impact,
        ),
        close_date=CloseDateThresholds(
            overdue_impact=model.close_date.overdue_impact,
            closing_soon_days=model.close_date.closing_soon_days,
            closing_soon_impact=model.close_date.closing_soon_impact,
            closing_soon_warm_days=model.close_date.closing_soon_warm_days,
            closing_soon_warm_impact=model.close_date.closing_soon_warm_impact,
        ),
        stale_panel=StalePanelThresholds(
            no_activity_days=model.stale_panel.no_activity_days,
            stuck_in_stage_days=model.stale_panel.stuck_in_stage_days,
        ),
    )


def validate_settings_document(candidate: object, *, source: str = "request") -> ScoringSettings:
    """Strictly validate a complete settings document.

    Raises:
        SettingsValidationError: Naming the first offending field.
    """
    try:
        model = _ScoringSettingsModel.model_validate(candidate)
    except ValidationError as exc:
        raise SettingsValidationError(source, _format_validation_error(exc)) from exc
    return _to_domain_settings(model)


# Open maps are replaced whole when stored, never merged key by key.
OPEN_MAP_KEYS = frozenset({"stageWeights"})


def merge_over_defaults(
    stored: Mapping[str, object],
    defaults: Mapping[str, object],
    *,
    atomic_keys: frozenset[str] = frozenset(),
) -> dict[str, object]:
    """Deep-merge ``stored`` over ``defaults`` so missing keys take default values.

    Top-level keys in ``atomic_keys`` are taken from ``stored`` as-is when present.
    """
    merged: dict[str, object] = dict(defaults)
    for key, value in stored.items():
        default_value = defaults.get(key)
        if (
            key not in atomic_keys
            and isinstance(value, Mapping)
            and isinstance(default_value, Mapping)
        ):
            merged[key] = merge_over_defaults(value, default_value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class SettingsStore:
    """Single validated write path for the scoring settings document.

    There is no partial update: callers load the current document, edit it and
    submit the whole thing back.
    """

    repository: SettingsRepository

    def get_defaults(self) -> ScoringSettings:
        return default_scoring_settings()

    def get(self) -> ScoringSettings:
        """Return the persisted settings, with defaults filling any missing key."""
        stored = self.repository.read()
        if stored is None:
            return self.get_defaults()
        if not isinstance(stored, Mapping):
            raise SettingsValidationError("stored settings", "<root>: expected an object")
        defaults = settings_to_document(self.get_defaults())
        return validate_settings_document(
            merge_over_defaults(stored, defaults, atomic_keys=OPEN_MAP_KEYS),
            source="stored settings",
        )

    def put(self, candidate: object) -> ScoringSettings:
        """Validate and persist a complete settings document."""
        settings = validate_settings_document(candidate)
        self.repository.write(settings_to_document(settings))
        get_logger("deal_forecaster.settings").info(
            "Scoring settings updated (%s stage weights)", len(settings.stage_weights)
        )
        return settings
