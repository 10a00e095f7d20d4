from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from threading import RLock
from typing import Optional

logger = logging.getLogger(__name__)


class HistoryIOError(OSError):
    pass


class HistoryCorrupted(ValueError):
    pass


def _decode(raw: bytes) -> list[str]:
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise HistoryCorrupted(str(exc)) from exc
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise HistoryCorrupted("history record is not a list of strings")
    # Hand-edited files may repeat terms; the first occurrence is the newest.
    seen: set[str] = set()
    terms: list[str] = []
    for item in data:
        if item not in seen:
            seen.add(item)
            terms.append(item)
    return terms


class HistoryStore:
    """Most-recent-first, duplicate-free list of search terms backed by a JSON file."""

    def __init__(self, path: Path | str, max_entries: Optional[int] = None) -> None:
        self._path = Path(path)
        self._max_entries = max_entries
        self._terms: list[str] = []
        self._lock = RLock()

    @property
    def path(self) -> Path:
        return self._path

    def __len__(self) -> int:
        with self._lock:
            return len(self._terms)

    def load(self) -> None:
        """Replace the in-memory history with the file contents.

        A missing, empty or unparsable file yields an empty history. Any other
        read failure also leaves the history empty but raises HistoryIOError.
        """
        with self._lock:
            self._terms = []
            try:
                raw = self._path.read_bytes()
            except FileNotFoundError:
                return
            except OSError as exc:
                raise HistoryIOError(f"Failed to read history {self._path}: {exc}") from exc

            if not raw.strip():
                return
            try:
                terms = _decode(raw)
            except HistoryCorrupted as exc:
                logger.warning("Discarding unreadable history file %s: %s", self._path, exc)
                return
            self._terms = self._truncate(terms)

    def save(self) -> None:
        """Overwrite the history file with the current list."""
        with self._lock:
            payload = json.dumps(self._terms, indent=2, ensure_ascii=False)
            tmp_name = None
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=self._path.parent,
                    prefix=f".{self._path.name}.",
                    suffix=".tmp",
                    delete=False,
                ) as handle:
                    tmp_name = handle.name
                    handle.write(payload)
                os.replace(tmp_name, self._path)
                tmp_name = None
            except OSError as exc:
                raise HistoryIOError(f"Failed to write history {self._path}: {exc}") from exc
            finally:
                if tmp_name is not None:
                    try:
                        os.unlink(tmp_name)
                    except OSError:
                        pass

    def add_term(self, term: str) -> None:
        """Move ``term`` to the front, removing any older occurrence."""
        if term == "":
            return
        with self._lock:
            terms = [term]
            terms.extend(existing for existing in self._terms if existing != term)
            self._terms = self._truncate(terms)

    def snapshot(self) -> list[str]:
        with self._lock:
            return list(self._terms)

    def _truncate(self, terms: list[str]) -> list[str]:
        if self._max_entries is not None and len(terms) > self._max_entries:
            return terms[: self._max_entries]
        return terms
