"""Search tool invocation and outcome classification.

Runs ripgrep (or anything speaking its command-line contract) once per call
and turns its exit status and output into a SearchOutcome.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence, Union

logger = logging.getLogger(__name__)

# ripgrep exits with 1 when nothing matched and 2 on real errors.
NO_MATCH_EXIT_CODE = 1

TOOL_ARGS = ("--color", "never", "--line-number", "--no-heading")


@dataclass(frozen=True)
class SearchRequest:
    """A single launched search."""
    pattern: str
    roots: tuple[str, ...]
    sequence: int


@dataclass(frozen=True)
class Matches:
    lines: tuple[str, ...] = ()


@dataclass(frozen=True)
class NoMatches:
    pass


@dataclass(frozen=True)
class ExecutionFailed:
    reason: str
    exit_code: Optional[int] = None


@dataclass(frozen=True)
class ToolNotFound(ExecutionFailed):
    tool_path: str = ""


SearchOutcome = Union[Matches, NoMatches, ExecutionFailed]


def build_command(tool_path: str, pattern: str, roots: Sequence[str]) -> list[str]:
    """Return the argv for one search; ``--`` keeps dash-prefixed patterns literal."""
    return [tool_path, *TOOL_ARGS, "--", pattern, *roots]


def parse_output(text: str) -> tuple[str, ...]:
    """Split tool output into match lines, dropping the empty tail after a final newline."""
    if not text:
        return ()
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return tuple(lines)


def classify(returncode: int, stdout: str, stderr: str) -> SearchOutcome:
    """Map an exit status and captured output to an outcome."""
    if returncode == 0:
        return Matches(parse_output(stdout))
    if returncode == NO_MATCH_EXIT_CODE:
        return NoMatches()
    diagnostic = stderr.strip() or f"exit status {returncode}"
    return ExecutionFailed(reason=diagnostic, exit_code=returncode)


def run_search(tool_path: str, pattern: str, roots: Sequence[str]) -> SearchOutcome:
    """Run the search tool and classify the result.

    Blocks until the process exits, so callers must stay off the GUI thread.
    An empty pattern means "no query" and never spawns a process.
    """
    if pattern == "":
        return Matches(())

    cmd = build_command(tool_path, pattern, roots)
    logger.debug("Running search: %s", cmd)

    try:
        result = subprocess.run(cmd, capture_output=True)
    except FileNotFoundError:
        return ToolNotFound(reason=f"Search tool not found: {tool_path}", tool_path=tool_path)
    except OSError as exc:
        return ExecutionFailed(reason=f"Failed to start {tool_path}: {exc}")

    stdout = result.stdout.decode("utf-8", errors="replace")
    stderr = result.stderr.decode("utf-8", errors="replace")
    logger.debug(
        "Search exited with %s (%d bytes stdout, %d bytes stderr)",
        result.returncode,
        len(result.stdout),
        len(result.stderr),
    )
    return classify(result.returncode, stdout, stderr)
