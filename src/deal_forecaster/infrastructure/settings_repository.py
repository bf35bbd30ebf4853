"""JSON-file backing store for the scoring settings document."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..exceptions import SettingsParseError
from ..protocols import FileSystem, SettingsRepository


@dataclass
class JsonFileSettingsRepository(SettingsRepository):
    """Stores the document as ``{"settings": {...}, "updatedAt": ...}``.

    Writes replace the whole file; concurrent writers race last-write-wins.
    """

    path: Path
    fs: FileSystem

    def read(self) -> object | None:
        if not self.fs.exists(self.path):
            return None
        try:
            envelope: object = json.loads(self.fs.read_text(self.path))
        except json.JSONDecodeError as exc:
            raise SettingsParseError(str(self.path), str(exc)) from exc
        if isinstance(envelope, dict) and "settings" in envelope:
            settings: object = envelope["settings"]
            return settings
        return envelope

    def write(self, document: Mapping[str, object]) -> None:
        envelope = {
            "settings": dict(document),
            "updatedAt": datetime.now(UTC).isoformat(),
        }
        self.fs.write_json(envelope, self.path)
