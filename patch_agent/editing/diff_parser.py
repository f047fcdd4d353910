"""
Diff parser — extracts SEARCH/REPLACE blocks from raw LLM output into
``Edit`` objects.

Two dialects are supported:

* ``plain``  — the filename sits on one of the three lines above
  ``<<<<<<< SEARCH``; later blocks without a filename reuse the last one.
* ``fenced`` — each block is wrapped in a code fence whose first line is
  the filename.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .markers import FENCE_MARKER, LineKind, classify_line
from .models import DiffMode, Edit

logger = logging.getLogger(__name__)

# How many lines above a SEARCH marker may hold the filename
FILENAME_WINDOW = 3

_PATH_PATTERN = re.compile(r"^/?\w[\w./-]*/[\w.-]+$")


class EditParseError(ValueError):
    """Raised when a block in the model output is malformed."""

    def __init__(self, line_number: int, reason: str, fenced: bool = False):
        self.line_number = line_number
        self.reason = reason
        kind = "fenced edit block" if fenced else "edit block"
        super().__init__(f"Error parsing {kind} at line {line_number}: {reason}")


def find_filename(lines: list[str]) -> Optional[str]:
    """Return the path-like line closest to the end of *lines*, or None.

    Blank lines, block markers and anything that does not look like a
    path containing at least one ``/`` (e.g. prose) are skipped.
    """
    for line in reversed(lines):
        candidate = line.strip()
        if not candidate or classify_line(candidate).is_marker:
            continue
        if _PATH_PATTERN.match(candidate):
            return candidate
    return None


def _index_of(lines: list[str], kind: LineKind, start: int = 0) -> int:
    """Index of the first line at or after *start* classified as *kind*, or -1."""
    for idx in range(start, len(lines)):
        if classify_line(lines[idx]) is kind:
            return idx
    return -1


def _read_block_body(
    lines: list[str], search_idx: int
) -> tuple[list[str], list[str], int]:
    """Collect the original and updated lines following a SEARCH marker.

    Returns ``(original_lines, updated_lines, replace_idx)``. Raises
    ``ValueError`` with the missing token when the block is truncated.
    """
    divider_idx = _index_of(lines, LineKind.DIVIDER, search_idx + 1)
    if divider_idx == -1:
        raise ValueError("Expected =======")

    replace_idx = _index_of(lines, LineKind.REPLACE, divider_idx + 1)
    if replace_idx == -1:
        raise ValueError("Expected >>>>>>> REPLACE")

    return (
        lines[search_idx + 1:divider_idx],
        lines[divider_idx + 1:replace_idx],
        replace_idx,
    )


class DiffParser:
    """Parse SEARCH/REPLACE blocks out of an LLM response."""

    def __init__(self, mode: DiffMode | str = DiffMode.PLAIN) -> None:
        self.mode = DiffMode.coerce(mode)

    def parse(self, content: str) -> list[Edit]:
        """Extract every edit block from *content*, in order.

        Raises
        ------
        EditParseError
            When a block is opened but not properly closed, or (plain mode)
            when no filename can be found for it.
        """
        lines = content.split("\n")
        if self.mode is DiffMode.FENCED:
            edits = self._parse_fenced(lines)
        else:
            edits = self._parse_plain(lines)

        logger.debug(
            "[DiffParse] Extracted %d edit(s) in %s mode: %s",
            len(edits), self.mode.value,
            ", ".join(e.path for e in edits) or "-",
        )
        return edits

    # ------------------------------------------------------------------
    # Dialects
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_plain(lines: list[str]) -> list[Edit]:
        edits: list[Edit] = []
        current_filename: Optional[str] = None
        i = 0

        while i < len(lines):
            if classify_line(lines[i]) is not LineKind.SEARCH:
                i += 1
                continue

            # A truncated block is reported before a missing filename
            try:
                original, updated, replace_idx = _read_block_body(lines, i)
            except ValueError as exc:
                raise EditParseError(i + 1, str(exc)) from None

            window = lines[max(0, i - FILENAME_WINDOW):i]
            filename = find_filename(window) or current_filename
            if not filename:
                raise EditParseError(i + 1, "Missing filename before edit block")

            edits.append(Edit(
                path=filename,
                original="\n".join(original),
                updated="\n".join(updated),
            ))
            current_filename = filename
            i = replace_idx + 1

        return edits

    @staticmethod
    def _parse_fenced(lines: list[str]) -> list[Edit]:
        edits: list[Edit] = []
        i = 0

        while i < len(lines):
            if classify_line(lines[i]) is not LineKind.FENCE:
                i += 1
                continue

            if i + 1 >= len(lines):
                raise EditParseError(
                    i + 1, "Expected filename after opening code fence", fenced=True
                )
            filename = lines[i + 1].strip()
            if not filename:
                raise EditParseError(
                    i + 1, "Missing filename after opening code fence", fenced=True
                )

            search_idx = _index_of(lines, LineKind.SEARCH, i + 2)
            if search_idx == -1:
                raise EditParseError(
                    i + 1, "Expected <<<<<<< SEARCH marker", fenced=True
                )

            try:
                original, updated, replace_idx = _read_block_body(lines, search_idx)
            except ValueError as exc:
                raise EditParseError(i + 1, str(exc), fenced=True) from None

            closing_idx = _index_of(lines, LineKind.FENCE, replace_idx + 1)
            if closing_idx == -1:
                raise EditParseError(
                    i + 1, f"Expected closing code fence {FENCE_MARKER}", fenced=True
                )

            edits.append(Edit(
                path=filename,
                original="\n".join(original),
                updated="\n".join(updated),
            ))
            i = closing_idx + 1

        return edits


def extract_edits(content: str, mode: DiffMode | str = DiffMode.PLAIN) -> list[Edit]:
    """Parse *content* in the given dialect. See ``DiffParser.parse``."""
    return DiffParser(mode).parse(content)
