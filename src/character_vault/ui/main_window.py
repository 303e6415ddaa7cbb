from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6 import QtCore, QtGui, QtWidgets

from ..config import VaultConfig
from ..models import RosterEntry
from ..roster import roster_tooltip
from ..state import VaultViewModel

logger = logging.getLogger(__name__)

EMPTY_SHEET_HTML = "<p style='color:#9aa3bb'>Select a character, or hit <b>Import JSON</b>.</p>"


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, config: Optional[VaultConfig] = None, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self.viewmodel = VaultViewModel(config, self)
        self.setWindowTitle("Character Vault")
        self.resize(1280, 860)

        self._build_ui()
        self._connect_signals()
        self._apply_theme()
        self.viewmodel.reload()

    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        container = QtWidgets.QWidget(self)
        layout = QtWidgets.QVBoxLayout(container)
        layout.setContentsMargins(24, 24, 24, 24)
        layout.setSpacing(16)

        header = QtWidgets.QFrame()
        header.setObjectName("headerFrame")
        header_layout = QtWidgets.QHBoxLayout(header)
        header_layout.setContentsMargins(18, 12, 18, 12)
        header_layout.setSpacing(12)

        self.title_label = QtWidgets.QLabel("Character Vault")
        title_font = QtGui.QFont()
        title_font.setPointSize(18)
        title_font.setBold(True)
        self.title_label.setFont(title_font)

        self.subtitle_label = QtWidgets.QLabel("Exported Foundry actors, at a glance")
        self.subtitle_label.setObjectName("subtitleLabel")

        self.import_button = QtWidgets.QPushButton(" Import JSON")
        self.import_button.setIcon(self.style().standardIcon(QtWidgets.QStyle.SP_DialogOpenButton))
        self.refresh_button = QtWidgets.QPushButton(" Refresh")
        self.refresh_button.setIcon(self.style().standardIcon(QtWidgets.QStyle.SP_BrowserReload))
        self.clear_button = QtWidgets.QPushButton(" Clear Imported")
        self.clear_button.setIcon(self.style().standardIcon(QtWidgets.QStyle.SP_TrashIcon))

        header_layout.addWidget(self.title_label)
        header_layout.addWidget(self.subtitle_label)
        header_layout.addStretch(1)
        header_layout.addWidget(self.import_button)
        header_layout.addWidget(self.refresh_button)
        header_layout.addWidget(self.clear_button)
        layout.addWidget(header)

        splitter = QtWidgets.QSplitter(QtCore.Qt.Horizontal, container)
        splitter.addWidget(self._build_roster_panel())
        splitter.addWidget(self._build_sheet_panel())
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 3)
        layout.addWidget(splitter)
        self.setCentralWidget(container)

    def _build_roster_panel(self) -> QtWidgets.QWidget:
        widget = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(widget)
        layout.setContentsMargins(0, 0, 0, 0)
        self.search_edit = QtWidgets.QLineEdit()
        self.search_edit.setPlaceholderText("Search name, class, race, items…")
        self.search_edit.setClearButtonEnabled(True)
        self.roster_list = QtWidgets.QListWidget()
        self.roster_list.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        layout.addWidget(self.search_edit)
        layout.addWidget(self.roster_list)
        return widget

    def _build_sheet_panel(self) -> QtWidgets.QWidget:
        widget = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(widget)
        layout.setContentsMargins(0, 0, 0, 0)

        self.inventory_edit = QtWidgets.QLineEdit()
        self.inventory_edit.setPlaceholderText("Search inventory…")
        self.inventory_edit.setClearButtonEnabled(True)
        layout.addWidget(self.inventory_edit)

        self.sheet_browser = QtWidgets.QTextBrowser()
        self.sheet_browser.setOpenExternalLinks(False)
        layout.addWidget(self.sheet_browser)

        export_layout = QtWidgets.QHBoxLayout()
        self.quit_button = QtWidgets.QPushButton(" Quit")
        self.quit_button.setIcon(self.style().standardIcon(QtWidgets.QStyle.SP_DialogCloseButton))
        export_layout.addWidget(self.quit_button)
        export_layout.addStretch(1)
        self.copy_button = QtWidgets.QPushButton(" Copy Sheet")
        self.copy_button.setIcon(self.style().standardIcon(QtWidgets.QStyle.SP_FileDialogDetailedView))
        self.export_button = QtWidgets.QPushButton(" Export Sheet…")
        self.export_button.setIcon(self.style().standardIcon(QtWidgets.QStyle.SP_ComputerIcon))
        export_layout.addWidget(self.copy_button)
        export_layout.addWidget(self.export_button)
        layout.addLayout(export_layout)
        return widget

    # ------------------------------------------------------------------
    def _connect_signals(self) -> None:
        self.import_button.clicked.connect(self._on_import_clicked)
        self.refresh_button.clicked.connect(self.viewmodel.reload)
        self.clear_button.clicked.connect(self._on_clear_clicked)
        self.search_edit.textChanged.connect(self.viewmodel.set_query)
        self.inventory_edit.textChanged.connect(lambda _: self._refresh_sheet())
        self.roster_list.currentItemChanged.connect(self._on_roster_item_changed)
        self.copy_button.clicked.connect(self._copy_sheet)
        self.export_button.clicked.connect(self._export_sheet)
        self.quit_button.clicked.connect(self._on_quit_clicked)

        self.viewmodel.rosterChanged.connect(self._refresh_roster)
        self.viewmodel.selectionChanged.connect(self._refresh_sheet)
        self.viewmodel.messageEmitted.connect(lambda message: self.statusBar().showMessage(message, 5000))

    # ------------------------------------------------------------------
    def _refresh_roster(self) -> None:
        entries = self.viewmodel.visible_entries()
        with QtCore.QSignalBlocker(self.roster_list):
            self.roster_list.clear()
            for entry in entries:
                item = QtWidgets.QListWidgetItem(f"{entry.name}\n{entry.meta.line1}")
                item.setData(QtCore.Qt.UserRole, entry.id)
                item.setToolTip(roster_tooltip(entry))
                self.roster_list.addItem(item)
                if entry.id == self.viewmodel.selected_id:
                    self.roster_list.setCurrentItem(item)
            if not entries:
                placeholder = QtWidgets.QListWidgetItem("No characters loaded.")
                placeholder.setFlags(QtCore.Qt.NoItemFlags)
                self.roster_list.addItem(placeholder)

    def _refresh_sheet(self) -> None:
        from ..export.sheet import build_sheet_html

        entry = self.viewmodel.selected_entry()
        has_entry = entry is not None
        self.copy_button.setEnabled(has_entry)
        self.export_button.setEnabled(has_entry)
        if not has_entry:
            self.sheet_browser.setHtml(EMPTY_SHEET_HTML)
            return
        self.sheet_browser.setHtml(build_sheet_html(entry, self.inventory_edit.text()))

    def _on_roster_item_changed(
        self,
        current: Optional[QtWidgets.QListWidgetItem],
        _previous: Optional[QtWidgets.QListWidgetItem],
    ) -> None:
        entry_id = current.data(QtCore.Qt.UserRole) if current is not None else None
        self.viewmodel.select(entry_id)

    # ------------------------------------------------------------------
    def _on_import_clicked(self) -> None:
        paths, _ = QtWidgets.QFileDialog.getOpenFileNames(
            self,
            "Import Actor JSON",
            "",
            "JSON Files (*.json)",
        )
        if not paths:
            return
        added = self.viewmodel.import_files(Path(path) for path in paths)
        if added < len(paths):
            self.statusBar().showMessage(f"Imported {added} of {len(paths)} file(s); see log for skipped files.", 8000)

    def _on_clear_clicked(self) -> None:
        answer = QtWidgets.QMessageBox.question(
            self,
            "Clear Imported",
            "Remove every imported snapshot from the local store?",
        )
        if answer == QtWidgets.QMessageBox.Yes:
            self.viewmodel.clear_imported()

    def _export_sheet(self) -> None:
        from ..export.sheet import export_sheet_to_text

        entry = self.viewmodel.selected_entry()
        if entry is None:
            return
        suggested = f"{_file_stem(entry)}.txt"
        path, _ = QtWidgets.QFileDialog.getSaveFileName(self, "Export Sheet", suggested, "Text Files (*.txt)")
        if not path:
            return
        try:
            export_sheet_to_text(entry, Path(path))
        except OSError as exc:  # pragma: no cover - surfacing to UI
            logger.exception("Sheet export failed")
            QtWidgets.QMessageBox.critical(self, "Export Failed", str(exc))
        else:
            QtWidgets.QMessageBox.information(self, "Export Complete", f"Saved to {path}")

    def _copy_sheet(self) -> None:
        from ..export.sheet import build_sheet_text

        entry = self.viewmodel.selected_entry()
        if entry is None:
            return
        QtWidgets.QApplication.clipboard().setText(build_sheet_text(entry))
        self.statusBar().showMessage("Character sheet copied to clipboard.", 5000)

    def _on_quit_clicked(self) -> None:
        app = QtWidgets.QApplication.instance()
        if app is not None:
            app.quit()

    # ------------------------------------------------------------------
    def _apply_theme(self) -> None:
        self.setStyleSheet(
            """
            QMainWindow {
                background-color: #1c1f26;
            }
            QWidget {
                color: #e0e3eb;
                font-size: 11pt;
            }
            QFrame#headerFrame {
                background-color: #242a35;
                border-radius: 12px;
                border: 1px solid #2f3642;
            }
            QPushButton {
                background-color: #3a4354;
                border: 1px solid #455065;
                border-radius: 6px;
                padding: 8px 14px;
            }
            QPushButton:hover {
                background-color: #485369;
            }
            QPushButton:disabled {
                color: #6b7386;
            }
            QLineEdit {
                background-color: #2f3642;
                border: 1px solid #3b4454;
                border-radius: 6px;
                padding: 4px 8px;
                selection-background-color: #4c5a73;
            }
            QTextBrowser {
                background-color: #232831;
                border: 1px solid #323a48;
                border-radius: 12px;
                padding: 12px;
            }
            QListWidget {
                background-color: #2b313d;
                border: 1px solid #3b4454;
                border-radius: 6px;
            }
            QListWidget::item {
                padding: 6px;
            }
            QListWidget::item:selected {
                background-color: #3f4a5e;
            }
            QStatusBar {
                background-color: #242a34;
                color: #cfd4e4;
            }
            QLabel#subtitleLabel {
                color: #9aa3bb;
            }
            """
        )


def _file_stem(entry: RosterEntry) -> str:
    stem = "".join(ch if ch.isalnum() else "-" for ch in entry.name.lower()).strip("-")
    return stem or "character-sheet"


def launch_app() -> None:
    import sys

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QtWidgets.QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())
