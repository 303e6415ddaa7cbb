from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from PySide6 import QtCore

from .config import VaultConfig
from .data import LocalStore, SnapshotRepository, read_payload_files
from .models import RosterEntry
from . import roster

logger = logging.getLogger(__name__)


class VaultViewModel(QtCore.QObject):
    rosterChanged = QtCore.Signal()
    selectionChanged = QtCore.Signal()
    messageEmitted = QtCore.Signal(str)

    def __init__(self, config: Optional[VaultConfig] = None, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self.config = config or VaultConfig.from_env()
        self.store = LocalStore(self.config.local_store)
        self.entries: List[RosterEntry] = []
        self.query = ""
        self.selected_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Loading
    def reload(self) -> None:
        self.messageEmitted.emit("Loading manifest…")
        payloads: List[Any] = []
        payloads.extend(self._manifest_payloads())
        payloads.extend(self.store.load())
        self.entries = roster.build_roster(payloads)
        if roster.find_entry(self.entries, self.selected_id) is None:
            self.selected_id = None
        self.rosterChanged.emit()
        self.selectionChanged.emit()
        if self.entries:
            self.messageEmitted.emit(f"{len(self.entries)} character(s) loaded.")
        else:
            self.messageEmitted.emit("No data loaded – import JSON to begin.")

    def import_files(self, paths: Iterable[Path]) -> int:
        payloads = read_payload_files(paths)
        added = self.store.append(payloads)
        logger.info("Imported %d snapshot(s) into %s", added, self.store.path)
        self.reload()
        return added

    def clear_imported(self) -> None:
        self.store.clear()
        self.reload()

    # ------------------------------------------------------------------
    # Roster
    def visible_entries(self) -> List[RosterEntry]:
        return roster.filter_entries(self.entries, self.query)

    def set_query(self, query: str) -> None:
        self.query = query
        if self.selected_id and roster.find_entry(self.visible_entries(), self.selected_id) is None:
            self.selected_id = None
            self.selectionChanged.emit()
        self.rosterChanged.emit()

    def select(self, entry_id: Optional[str]) -> None:
        if entry_id == self.selected_id:
            return
        if entry_id is not None and roster.find_entry(self.entries, entry_id) is None:
            return
        self.selected_id = entry_id
        self.selectionChanged.emit()

    def selected_entry(self) -> Optional[RosterEntry]:
        return roster.find_entry(self.entries, self.selected_id)

    # ------------------------------------------------------------------
    def _manifest_payloads(self) -> List[Any]:
        try:
            repository = SnapshotRepository(self.config.data_dir)
        except FileNotFoundError as exc:
            # Not fatal: imported snapshots still load.
            logger.warning("%s", exc)
            return []
        return repository.load_all(refresh=True)
