"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces that engine entry points depend
on, enabling isolated unit testing with in-memory implementations.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .domain.opportunity import Opportunity

if TYPE_CHECKING:
    import pandas as pd


@dataclass(frozen=True)
class OpportunityQuery:
    """Filters for fetching opportunities closing within ``[start, end_exclusive)``.

    ``owner_id`` of ``"Unassigned"`` matches records with no owner.
    """

    start: date
    end_exclusive: date
    owner_id: str | None = None


@runtime_checkable
class OpportunitySource(Protocol):
    """Read-only access to opportunity records."""

    def list_opportunities(self, query: OpportunityQuery) -> list[Opportunity]:
        """Return opportunities whose effective close date falls in the query range."""
        ...

    def get_opportunity(self, opportunity_id: str) -> Opportunity | None:
        """Return one opportunity by ID, or None."""
        ...


@runtime_checkable
class OwnerDirectory(Protocol):
    """Display-name lookup for opportunity owners."""

    def display_name(self, owner_id: str) -> str | None:
        """Return the owner's display name, or None if unknown."""
        ...


@runtime_checkable
class SettingsRepository(Protocol):
    """Backing store for the single scoring settings document."""

    def read(self) -> object | None:
        """Return the persisted document, or None when nothing is stored."""
        ...

    def write(self, document: Mapping[str, object]) -> None:
        """Replace the persisted document."""
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Abstract filesystem for engine inputs and outputs."""

    def read_text(self, path: Path) -> str:
        """Read text file."""
        ...

    def write_text(self, content: str, path: Path) -> None:
        """Write text file."""
        ...

    def read_json(self, path: Path) -> object:
        """Read JSON file."""
        ...

    def write_json(self, data: Mapping[str, object], path: Path) -> None:
        """Write JSON file."""
        ...

    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        """Write DataFrame to CSV file."""
        ...

    def exists(self, path: Path) -> bool:
        """Check if path exists."""
        ...
