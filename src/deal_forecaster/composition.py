"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

from pathlib import Path

from .application.settings_store import SettingsStore
from .cli import CliDependencies, create_app
from .config import EngineConfig
from .infrastructure import JsonFileCrmSource, JsonFileSettingsRepository, LocalFileSystem


def build_cli_dependencies(*, config: EngineConfig) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Args:
        config: Engine configuration (used for file locations).
    """
    fs = LocalFileSystem()
    crm_source = JsonFileCrmSource(path=Path(config.crm_data_path), fs=fs)
    settings_store = SettingsStore(
        JsonFileSettingsRepository(path=Path(config.settings_path), fs=fs)
    )
    return CliDependencies(
        fs=fs,
        opportunities=crm_source,
        owners=crm_source,
        settings_store=settings_store,
    )


app = create_app(build_cli_dependencies)
