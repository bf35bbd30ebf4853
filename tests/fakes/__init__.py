"""Exports for test fakes."""

from .crm import InMemoryOpportunitySource, InMemorySettingsRepository
from .filesystem import InMemoryFileSystem

__all__ = [
    "InMemoryFileSystem",
    "InMemoryOpportunitySource",
    "InMemorySettingsRepository",
]
