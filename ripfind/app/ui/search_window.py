"""Main search window: input box, result list and status bar."""

from __future__ import annotations

import logging

from PySide6.QtCore import QModelIndex, QStringListModel, Qt
from PySide6.QtWidgets import (
    QApplication,
    QCompleter,
    QLabel,
    QLineEdit,
    QListView,
    QMainWindow,
    QStyle,
    QSystemTrayIcon,
    QVBoxLayout,
    QWidget,
)

from ripfind.app.context import AppContext
from ripfind.search.controller import (
    ERROR_PLACEHOLDER,
    NO_MATCHES_PLACEHOLDER,
    SearchController,
)
from ripfind.search.history import HistoryIOError

logger = logging.getLogger(__name__)

PLACEHOLDER_ROWS = {NO_MATCHES_PLACEHOLDER, ERROR_PLACEHOLDER}


class SearchWindow(QMainWindow):
    """Window wiring Qt widgets to a SearchController."""

    def __init__(self, context: AppContext, controller: SearchController | None = None, parent=None):
        super().__init__(parent)
        self.context = context
        self.controller = controller or SearchController(context, parent=self)
        self._tray: QSystemTrayIcon | None = None

        self.setWindowTitle("ripfind")
        self.resize(800, 600)
        self._init_ui()
        self._connect_controller()
        self._refresh_history()

    def _init_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(8)

        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Enter search pattern...")
        self.search_input.setClearButtonEnabled(True)
        layout.addWidget(self.search_input)

        self.history_model = QStringListModel(self)
        self.completer = QCompleter(self.history_model, self)
        self.completer.setCaseSensitivity(Qt.CaseInsensitive)
        self.completer.setCompletionMode(QCompleter.PopupCompletion)
        self.search_input.setCompleter(self.completer)

        self.results_model = QStringListModel(self)
        self.results_view = QListView()
        self.results_view.setModel(self.results_model)
        self.results_view.setUniformItemSizes(True)
        self.results_view.setEditTriggers(QListView.NoEditTriggers)
        layout.addWidget(self.results_view, 1)

        self.setCentralWidget(central)

        self.status_label = QLabel("Ready.")
        self.statusBar().addWidget(self.status_label, 1)

        self.search_input.textChanged.connect(self.controller.on_text_changed)
        self.search_input.returnPressed.connect(self._on_return_pressed)
        self.results_view.clicked.connect(self._on_result_selected)
        self.results_view.activated.connect(self._on_result_selected)

    def _connect_controller(self) -> None:
        self.controller.resultsChanged.connect(self.set_results)
        self.controller.statusChanged.connect(self.status_label.setText)
        self.controller.errorRaised.connect(self._notify_error)
        self.controller.historyChanged.connect(self._refresh_history)

    def _on_return_pressed(self) -> None:
        self.controller.on_submitted(self.search_input.text())

    def set_results(self, lines: list) -> None:
        self.results_model.setStringList(lines)

    def results(self) -> list[str]:
        return self.results_model.stringList()

    def _refresh_history(self) -> None:
        self.history_model.setStringList(self.context.history.snapshot())

    def _on_result_selected(self, index: QModelIndex) -> None:
        """Copy the chosen line to the clipboard and hand focus back to the input."""
        if not index.isValid():
            return
        line = index.data(Qt.DisplayRole)
        if line and line not in PLACEHOLDER_ROWS:
            clipboard = QApplication.clipboard()
            if clipboard is not None:
                clipboard.setText(line)
                self.status_label.setText(f"Copied: {line}")
            else:
                logger.info("Selected (clipboard not available): %s", line)
                self.status_label.setText(f"Selected: {line} (clipboard N/A)")
        self.results_view.clearSelection()
        self.search_input.setFocus()

    def _notify_error(self, reason: str) -> None:
        if not QSystemTrayIcon.isSystemTrayAvailable():
            logger.error("Ripgrep error: %s", reason)
            return
        if self._tray is None:
            self._tray = QSystemTrayIcon(self.style().standardIcon(QStyle.SP_MessageBoxWarning), self)
            self._tray.show()
        self._tray.showMessage("Ripgrep Error", reason, QSystemTrayIcon.Warning)

    def focus_search(self) -> None:
        self.search_input.setFocus()
        self.search_input.selectAll()

    def closeEvent(self, event):  # type: ignore[override]
        self.controller.shutdown()
        try:
            self.context.history.save()
        except HistoryIOError as exc:
            logger.error("Error saving history on close: %s", exc)
        if self._tray is not None:
            self._tray.hide()
        super().closeEvent(event)
