"""Filesystem implementations for infrastructure.

Usage example:
    from pathlib import Path

    import pandas as pd

    from deal_forecaster.infrastructure.filesystem import LocalFileSystem

    fs = LocalFileSystem()
    fs.write_csv(pd.DataFrame({"col": ["a"]}), Path("reports/deals.csv"))
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

import pandas as pd

from ..protocols import FileSystem


class LocalFileSystem(FileSystem):
    """Local filesystem implementation."""

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def write_text(self, content: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def read_json(self, path: Path) -> object:
        payload: object = json.loads(path.read_text(encoding="utf-8"))
        return payload

    def write_json(self, data: Mapping[str, object], path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)

    def exists(self, path: Path) -> bool:
        return path.exists()
