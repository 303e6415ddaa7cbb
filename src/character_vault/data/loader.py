from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import MANIFEST_NAME

__all__ = [
    "ManifestEntry",
    "SnapshotRepository",
    "read_json",
]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ManifestEntry:
    name: str
    file: str

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["ManifestEntry"]:
        if not isinstance(raw, dict) or not isinstance(raw.get("file"), str):
            return None
        name = raw.get("name")
        return cls(name=name if isinstance(name, str) else "", file=raw["file"])


def read_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


class SnapshotRepository:
    """Loads the published snapshots listed in ``manifest.json``."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir).resolve()
        if not self.data_dir.exists():
            raise FileNotFoundError(f"Snapshot directory not found at {self.data_dir}")
        self._cache: Dict[Path, Any] = {}

    @property
    def manifest_path(self) -> Path:
        return self.data_dir / MANIFEST_NAME

    def manifest(self) -> List[ManifestEntry]:
        path = self.manifest_path
        if not path.exists():
            logger.info("No manifest at %s", path)
            return []
        try:
            raw = read_json(path)
        except (OSError, ValueError) as exc:
            logger.warning("Manifest %s could not be read: %s", path, exc)
            return []
        if not isinstance(raw, list):
            logger.warning("Manifest %s is not a list", path)
            return []
        return [entry for entry in (ManifestEntry.from_raw(item) for item in raw) if entry]

    def resolve(self, file: str) -> Path:
        # Manifest paths are site-relative ("./data/actors/x.json") or data-relative.
        cleaned = file[2:] if file.startswith("./") else file
        candidate = (self.data_dir / cleaned).resolve()
        if candidate.exists():
            return candidate
        return (self.data_dir.parent / cleaned).resolve()

    def load(self, entry: ManifestEntry, refresh: bool = False) -> Optional[Any]:
        path = self.resolve(entry.file)
        if refresh or path not in self._cache:
            try:
                self._cache[path] = read_json(path)
            except (OSError, ValueError) as exc:
                logger.warning("Skipping snapshot %s: %s", path, exc)
                return None
        return self._cache[path]

    def load_all(self, refresh: bool = False) -> List[Any]:
        payloads: List[Any] = []
        for entry in self.manifest():
            payload = self.load(entry, refresh=refresh)
            if payload is not None:
                payloads.append(payload)
        return payloads
