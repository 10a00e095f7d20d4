"""Debounced search orchestration.

Turns input events into search launches and forwards only the newest
completed outcome to the window. All state transitions happen on the Qt
thread that owns the controller; worker threads report back through a
queued signal.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from PySide6.QtCore import QObject, Qt, QTimer, Signal

from ripfind.app.config import SearchSettings
from ripfind.app.context import AppContext
from ripfind.search.executor import (
    ExecutionFailed,
    Matches,
    SearchOutcome,
    SearchRequest,
    ToolNotFound,
    run_search,
)
from ripfind.search.history import HistoryIOError

logger = logging.getLogger(__name__)

Runner = Callable[[str, str, Sequence[str]], SearchOutcome]

READY_STATUS = "Ready. Enter a search pattern."
NO_MATCHES_PLACEHOLDER = "No matches found."
ERROR_PLACEHOLDER = "Error running search..."


@dataclass
class DebounceState:
    pending_text: str = ""
    timer_armed: bool = False
    last_launched_sequence: int = 0
    last_applied_sequence: int = 0


class SearchController(QObject):
    """Owns the debounce timer and the launch/apply sequence counters."""

    resultsChanged = Signal(list)
    statusChanged = Signal(str)
    errorRaised = Signal(str)
    historyChanged = Signal()
    searchLaunched = Signal(object)  # SearchRequest
    _searchFinished = Signal(object, object)  # SearchRequest, SearchOutcome

    def __init__(self, context: AppContext, runner: Optional[Runner] = None, parent=None):
        super().__init__(parent)
        self.context = context
        self.state = DebounceState()
        self._runner: Runner = runner or run_search
        self._tool_failure: Optional[ToolNotFound] = None
        self._closed = False

        self._debounce_timer = QTimer(self)
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.setInterval(context.settings.debounce_ms)
        self._debounce_timer.timeout.connect(self._on_timer_fired)

        self._searchFinished.connect(self._on_search_finished, Qt.QueuedConnection)

        # One worker keeps history writes in launch order.
        self._history_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ripfind-history")
        self._history_future: Optional[Future] = None

    @property
    def debounce_ms(self) -> int:
        return self._debounce_timer.interval()

    def apply_settings(self, settings: SearchSettings) -> None:
        """Swap in new tool/roots/debounce settings and forget a latched missing tool."""
        self.context.settings = settings
        self._debounce_timer.setInterval(settings.debounce_ms)
        self._tool_failure = None

    # --- input events -------------------------------------------------

    def on_text_changed(self, text: str) -> None:
        self.state.pending_text = text
        if not text.strip():
            self._cancel_timer()
            self._clear_results()
            return
        self._debounce_timer.start()
        self.state.timer_armed = True

    def on_submitted(self, text: str) -> None:
        self._cancel_timer()
        self.state.pending_text = text
        self.launch_search(text)

    def _on_timer_fired(self) -> None:
        self.state.timer_armed = False
        self.launch_search(self.state.pending_text)

    def _cancel_timer(self) -> None:
        self._debounce_timer.stop()
        self.state.timer_armed = False

    # --- launching ----------------------------------------------------

    def launch_search(self, text: str) -> Optional[SearchRequest]:
        """Start a search for ``text`` and return the request, or None if it was blank."""
        pattern = text.strip()
        if not pattern:
            self._clear_results()
            return None

        settings = self.context.settings
        sequence = self.state.last_launched_sequence + 1
        self.state.last_launched_sequence = sequence
        request = SearchRequest(pattern=pattern, roots=tuple(settings.search_dirs), sequence=sequence)

        self._record_history(pattern)
        self.statusChanged.emit(f"Searching for '{pattern}'...")
        self.searchLaunched.emit(request)

        if self._tool_failure is not None:
            self._on_search_finished(request, self._tool_failure)
            return request

        thread = threading.Thread(
            target=self._run_request,
            args=(request, settings.tool_path),
            name=f"ripfind-search-{sequence}",
            daemon=True,
        )
        thread.start()
        return request

    def _run_request(self, request: SearchRequest, tool_path: str) -> None:
        try:
            outcome = self._runner(tool_path, request.pattern, request.roots)
        except Exception as exc:
            logger.exception("Search worker failed for %r", request.pattern)
            outcome = ExecutionFailed(reason=str(exc) or exc.__class__.__name__)
        try:
            self._searchFinished.emit(request, outcome)
        except RuntimeError:
            # Controller was destroyed while the tool was still running.
            logger.debug("Dropping result #%d after shutdown", request.sequence)

    # --- applying -----------------------------------------------------

    def _on_search_finished(self, request: SearchRequest, outcome: SearchOutcome) -> None:
        if request.sequence <= self.state.last_applied_sequence:
            logger.debug("Discarding stale result #%d for %r", request.sequence, request.pattern)
            return
        self.state.last_applied_sequence = request.sequence
        self._apply_outcome(request.pattern, outcome)

    def _apply_outcome(self, pattern: str, outcome: SearchOutcome) -> None:
        if isinstance(outcome, ExecutionFailed):
            notify = True
            if isinstance(outcome, ToolNotFound):
                notify = self._tool_failure is None
                self._tool_failure = outcome
            logger.warning("Search for %r failed: %s", pattern, outcome.reason)
            self.resultsChanged.emit([ERROR_PLACEHOLDER])
            self.statusChanged.emit(f"Error: {outcome.reason}")
            if notify:
                self.errorRaised.emit(outcome.reason)
            return

        lines = list(outcome.lines) if isinstance(outcome, Matches) else []
        if not lines:
            self.resultsChanged.emit([NO_MATCHES_PLACEHOLDER])
            self.statusChanged.emit(f"No matches found for '{pattern}'")
            return
        self.resultsChanged.emit(lines)
        self.statusChanged.emit(f"Found {len(lines)} match(es) for '{pattern}'")

    def _clear_results(self) -> None:
        # Anything still running belongs to text that is no longer in the box.
        self.state.last_applied_sequence = max(
            self.state.last_applied_sequence, self.state.last_launched_sequence
        )
        self.resultsChanged.emit([])
        self.statusChanged.emit(READY_STATUS)

    # --- history ------------------------------------------------------

    def _record_history(self, term: str) -> None:
        if self._closed:
            return
        self._history_future = self._history_executor.submit(self._write_history, term)

    def _write_history(self, term: str) -> None:
        history = self.context.history
        try:
            history.add_term(term)
            history.save()
        except HistoryIOError as exc:
            logger.warning("Error saving search history: %s", exc)
        except Exception:
            logger.exception("Unexpected failure recording %r in history", term)
        try:
            self.historyChanged.emit()
        except RuntimeError:
            pass

    def flush_history(self, timeout: Optional[float] = None) -> None:
        """Block until every queued history write has finished."""
        future = self._history_future
        if future is not None:
            future.result(timeout=timeout)

    def shutdown(self) -> None:
        """Stop the timer and drain pending history writes."""
        if self._closed:
            return
        self._closed = True
        self._cancel_timer()
        self._history_executor.shutdown(wait=True)
