from __future__ import annotations

import argparse
import logging
import os
import sys
import time
import traceback
from pathlib import Path

from PySide6.QtCore import QtMsgType, qInstallMessageHandler
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication

from ripfind.app import config
from ripfind.app.context import AppContext
from ripfind.app.ui.search_window import SearchWindow
from ripfind.search.history import HistoryIOError

logger = logging.getLogger(__name__)


# ============================================================================
# DEBUG CONFIGURATION - Environment Variables
# ============================================================================
# RIPFIND_DEBUG      - "1"/"true" forces DEBUG logging (search commands, stale drops)
# RIPFIND_LOG_LEVEL  - explicit logging level name (default: WARNING)
# RIPFIND_CONFIG     - alternate config.yaml location
# ============================================================================

def _debug_enabled(var_name: str) -> bool:
    """Check if a debug flag is enabled."""
    return os.getenv(var_name, "0") not in ("0", "false", "False", "", None)


def _configure_logging() -> None:
    if _debug_enabled("RIPFIND_DEBUG"):
        level = logging.DEBUG
    else:
        level = getattr(logging, os.getenv("RIPFIND_LOG_LEVEL", "WARNING").upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _diag(msg: str) -> None:
    """Lightweight diagnostic logger for startup/teardown events."""
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    print(f"[ripfind {timestamp}] {msg}", file=sys.stderr)


def _qt_message_handler(mode: QtMsgType, context, message: str) -> None:
    """Route Qt messages into logging, dropping known harmless noise."""
    if "QWindowsFontEngineDirectWrite::recalcAdvances" in message:
        return
    if "Accessible invalid" in message or "Could not find accessible on path" in message:
        return
    qt_logger = logging.getLogger("qt")
    if mode == QtMsgType.QtDebugMsg:
        qt_logger.debug(message)
    elif mode == QtMsgType.QtWarningMsg:
        qt_logger.warning(message)
    elif mode == QtMsgType.QtCriticalMsg:
        qt_logger.error(message)
    elif mode == QtMsgType.QtFatalMsg:
        qt_logger.critical(message)
        sys.exit(1)
    else:
        qt_logger.info(message)


def _apply_dark_palette(app: QApplication) -> None:
    app.setStyle("Fusion")
    palette = QPalette()
    palette.setColor(QPalette.Window, QColor(45, 45, 45))
    palette.setColor(QPalette.WindowText, QColor(220, 220, 220))
    palette.setColor(QPalette.Base, QColor(30, 30, 30))
    palette.setColor(QPalette.AlternateBase, QColor(45, 45, 45))
    palette.setColor(QPalette.ToolTipBase, QColor(45, 45, 45))
    palette.setColor(QPalette.ToolTipText, QColor(220, 220, 220))
    palette.setColor(QPalette.Text, QColor(220, 220, 220))
    palette.setColor(QPalette.PlaceholderText, QColor(130, 130, 130))
    palette.setColor(QPalette.Button, QColor(53, 53, 53))
    palette.setColor(QPalette.ButtonText, QColor(220, 220, 220))
    palette.setColor(QPalette.Highlight, QColor(42, 130, 218))
    palette.setColor(QPalette.HighlightedText, QColor(255, 255, 255))
    app.setPalette(palette)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Incremental ripgrep search window.")
    parser.add_argument("dirs", nargs="*", help="Directories to search (overrides search_dirs).")
    parser.add_argument("--config", help="Path to config.yaml.")
    parser.add_argument("--tool", help="Search tool executable (overrides ripgrep_path).")
    parser.add_argument("--history", help="Path to the search history JSON file.")
    parser.add_argument("--debounce-ms", type=int, help="Delay after the last keystroke before searching.")
    return parser.parse_args(argv)


def _build_settings(args: argparse.Namespace) -> config.SearchSettings:
    settings = config.load_settings(args.config)
    if args.dirs:
        settings.search_dirs = list(args.dirs)
    if args.tool:
        settings.tool_path = args.tool
    if args.history:
        settings.history_path = Path(args.history).expanduser()
    if args.debounce_ms is not None:
        settings.debounce_ms = config.clamp_debounce_ms(args.debounce_ms)
    return settings


def main() -> None:
    args = _parse_args(sys.argv[1:])
    _configure_logging()
    _diag("Application starting.")

    try:
        settings = _build_settings(args)
    except config.ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    config.init_settings()

    context = AppContext.from_settings(settings)
    try:
        context.history.load()
    except HistoryIOError as exc:
        logger.warning("Failed to load search history: %s", exc)

    if config.resolve_tool(settings.tool_path) is None:
        _diag(f"Search tool '{settings.tool_path}' not found on PATH; searches will fail until it is installed.")

    qInstallMessageHandler(_qt_message_handler)
    qt_app = QApplication(sys.argv)
    qt_app.setApplicationName("ripfind")
    if settings.theme == "dark":
        _apply_dark_palette(qt_app)

    window = SearchWindow(context)
    try:
        window.show()
        window.focus_search()
        _diag("Main window shown; entering Qt event loop.")
        rc = qt_app.exec()
        _diag(f"Qt event loop exited with code {rc}.")
        sys.exit(rc)
    except Exception as exc:
        _diag(f"Unhandled exception: {exc}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover - manual entry point
    main()
