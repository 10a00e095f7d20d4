from __future__ import annotations

from dataclasses import dataclass

from ripfind.app.config import SearchSettings
from ripfind.search.history import HistoryStore


@dataclass
class AppContext:
    """Objects shared by the controller and the window, built once at startup."""

    settings: SearchSettings
    history: HistoryStore

    @classmethod
    def from_settings(cls, settings: SearchSettings) -> "AppContext":
        return cls(
            settings=settings,
            history=HistoryStore(settings.history_path, max_entries=settings.history_limit),
        )
