from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

APP_DIR = Path.home() / ".ripfind"
DEFAULT_CONFIG_PATH = APP_DIR / "config.yaml"
DEFAULT_HISTORY_PATH = APP_DIR / "history.json"
DEFAULT_TOOL_PATH = "rg"
DEFAULT_SEARCH_DIRS = (".",)
DEFAULT_DEBOUNCE_MS = 300
MIN_DEBOUNCE_MS = 50
MAX_DEBOUNCE_MS = 5000
THEMES = {"dark", "system"}


class ConfigError(RuntimeError):
    pass


@dataclass
class SearchSettings:
    tool_path: str = DEFAULT_TOOL_PATH
    search_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_SEARCH_DIRS))
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    history_path: Path = DEFAULT_HISTORY_PATH
    history_limit: Optional[int] = None
    theme: str = "dark"


def init_settings() -> None:
    APP_DIR.mkdir(parents=True, exist_ok=True)


def default_config_path() -> Path:
    """Return the config path, honouring RIPFIND_CONFIG."""
    env_path = os.getenv("RIPFIND_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def _read_config_file(path: Path) -> dict:
    """Return the parsed YAML mapping, or an empty dict when the file is missing."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration {path}: {exc}") from exc
    try:
        payload = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed configuration {path}: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ConfigError(f"Configuration {path} must be a mapping, got {type(payload).__name__}")
    return payload


def clamp_debounce_ms(value: Any) -> int:
    """Coerce a debounce delay to an int within a sensible range (default: 300)."""
    try:
        ms = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid debounce_ms %r; using %d", value, DEFAULT_DEBOUNCE_MS)
        return DEFAULT_DEBOUNCE_MS
    return max(MIN_DEBOUNCE_MS, min(MAX_DEBOUNCE_MS, ms))


def _load_tool_path(payload: dict) -> str:
    value = payload.get("ripgrep_path")
    if isinstance(value, str) and value.strip():
        return value.strip()
    if value is not None:
        logger.warning("Ignoring invalid ripgrep_path %r", value)
    return DEFAULT_TOOL_PATH


def _load_search_dirs(payload: dict) -> list[str]:
    value = payload.get("search_dirs")
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    if isinstance(value, list):
        dirs = [str(entry) for entry in value if isinstance(entry, (str, int, float)) and str(entry).strip()]
        if dirs:
            return dirs
    if value is not None:
        logger.warning("Ignoring invalid search_dirs %r", value)
    return list(DEFAULT_SEARCH_DIRS)


def _load_history_path(payload: dict, config_dir: Path) -> Path:
    value = payload.get("history_path")
    if isinstance(value, str) and value.strip():
        path = Path(value.strip()).expanduser()
        if not path.is_absolute():
            path = config_dir / path
        return path
    if value is not None:
        logger.warning("Ignoring invalid history_path %r", value)
    return DEFAULT_HISTORY_PATH


def _load_history_limit(payload: dict) -> Optional[int]:
    value = payload.get("history_limit")
    if value is None or isinstance(value, bool):
        return None
    try:
        limit = int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid history_limit %r", value)
        return None
    return limit if limit > 0 else None


def _load_theme(payload: dict) -> str:
    value = payload.get("theme")
    if isinstance(value, str) and value.strip().lower() in THEMES:
        return value.strip().lower()
    return "dark"


def load_settings(path: Optional[Path | str] = None) -> SearchSettings:
    """Load settings from YAML; a missing file yields the defaults."""
    config_path = Path(path).expanduser() if path is not None else default_config_path()
    payload = _read_config_file(config_path)
    settings = SearchSettings(
        tool_path=_load_tool_path(payload),
        search_dirs=_load_search_dirs(payload),
        debounce_ms=clamp_debounce_ms(payload.get("debounce_ms", DEFAULT_DEBOUNCE_MS)),
        history_path=_load_history_path(payload, config_path.parent),
        history_limit=_load_history_limit(payload),
        theme=_load_theme(payload),
    )
    logger.debug("Loaded settings from %s: %s", config_path, settings)
    return settings


def resolve_tool(tool_path: str) -> Optional[str]:
    """Return the absolute executable path, or None if it cannot be found."""
    return shutil.which(tool_path)
