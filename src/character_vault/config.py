from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DATA_DIR_ENV = "CHARACTER_VAULT_DATA_DIR"
STORE_ENV = "CHARACTER_VAULT_STORE"

MANIFEST_NAME = "manifest.json"
STORE_NAME = "local_actor_payloads_v1.json"


@dataclass(slots=True)
class VaultConfig:
    """Where snapshots are read from and where imported ones are kept."""

    data_dir: Path
    local_store: Path

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "VaultConfig":
        environ = os.environ if environ is None else environ
        data_dir = Path(environ.get(DATA_DIR_ENV) or _default_data_dir())
        local_store = Path(environ.get(STORE_ENV) or Path.home() / ".character_vault" / STORE_NAME)
        return cls(data_dir=data_dir.expanduser(), local_store=local_store.expanduser())


def _default_data_dir() -> Path:
    current = Path(__file__).resolve()
    project_root = current.parents[2]
    return project_root / "data"
