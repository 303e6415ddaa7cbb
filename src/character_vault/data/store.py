from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List

from .loader import read_json

__all__ = ["LocalStore", "read_payload_files"]

logger = logging.getLogger(__name__)


class LocalStore:
    """JSON file holding snapshots the user imported by hand."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> List[Any]:
        if not self.path.exists():
            return []
        try:
            payloads = read_json(self.path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable local store %s: %s", self.path, exc)
            return []
        return payloads if isinstance(payloads, list) else []

    def save(self, payloads: Iterable[Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(list(payloads), handle, ensure_ascii=False)

    def append(self, payloads: Iterable[Any]) -> int:
        new_payloads = list(payloads)
        if new_payloads:
            self.save(self.load() + new_payloads)
        return len(new_payloads)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


def read_payload_files(paths: Iterable[Path]) -> List[Any]:
    """Parse each file as JSON, skipping the ones that are not."""

    payloads: List[Any] = []
    for path in paths:
        try:
            payloads.append(read_json(Path(path)))
        except (OSError, ValueError) as exc:
            logger.warning("Bad JSON in %s: %s", path, exc)
    return payloads
