"""
Marker grammar — the literal tokens that delimit a SEARCH/REPLACE block.
"""

from __future__ import annotations

import enum
import re

SEARCH_MARKER = "<<<<<<< SEARCH"
DIVIDER_MARKER = "======="
REPLACE_MARKER = ">>>>>>> REPLACE"
FENCE_MARKER = "```"

_SEARCH_PATTERN = re.compile(r"^<{7} ?SEARCH\s*$")
_DIVIDER_PATTERN = re.compile(r"^={7}\s*$")
_REPLACE_PATTERN = re.compile(r"^>{7} ?REPLACE\s*$")


class LineKind(enum.Enum):
    """What a single line of model output means to the block extractor."""
    SEARCH = "search"
    DIVIDER = "divider"
    REPLACE = "replace"
    FENCE = "fence"
    CONTENT = "content"

    @property
    def is_marker(self) -> bool:
        return self in (LineKind.SEARCH, LineKind.DIVIDER, LineKind.REPLACE)


def classify_line(line: str) -> LineKind:
    """Classify one line; surrounding whitespace is ignored.

    A fence only needs the leading backticks, so ```` ```python ```` is a
    fence too.
    """
    text = line.strip()
    if not text:
        return LineKind.CONTENT

    first = text[0]
    if first == "<" and _SEARCH_PATTERN.match(text):
        return LineKind.SEARCH
    if first == "=" and _DIVIDER_PATTERN.match(text):
        return LineKind.DIVIDER
    if first == ">" and _REPLACE_PATTERN.match(text):
        return LineKind.REPLACE
    if text.startswith(FENCE_MARKER):
        return LineKind.FENCE
    return LineKind.CONTENT


def is_search(line: str) -> bool:
    return classify_line(line) is LineKind.SEARCH


def is_divider(line: str) -> bool:
    return classify_line(line) is LineKind.DIVIDER


def is_replace(line: str) -> bool:
    return classify_line(line) is LineKind.REPLACE


def is_fence(line: str) -> bool:
    return classify_line(line) is LineKind.FENCE
