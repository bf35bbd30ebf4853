"""Infrastructure adapters for the engine."""

from .crm_source import JsonFileCrmSource
from .filesystem import LocalFileSystem
from .settings_repository import JsonFileSettingsRepository

__all__ = ["JsonFileCrmSource", "JsonFileSettingsRepository", "LocalFileSystem"]
