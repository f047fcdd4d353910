"""
Patch matcher — locates a SEARCH fragment inside a file and splices in
the REPLACE text.

Strategies are tried in order and the first hit wins; exact matching
always runs before the whitespace-tolerant pass.
"""

from __future__ import annotations

import re
from typing import Callable, Optional

# (whole_lines, part_lines, replace_lines) -> new whole_lines or None
MatchStrategy = Callable[[list[str], list[str], list[str]], Optional[list[str]]]

_LEADING_WS = re.compile(r"^\s*")


def _find_window(
    whole_lines: list[str],
    part_lines: list[str],
    key: Callable[[str], str] = lambda line: line,
) -> int:
    """Start index of the first window of *whole_lines* equal to *part_lines*."""
    size = len(part_lines)
    target = [key(line) for line in part_lines]
    for start in range(len(whole_lines) - size + 1):
        if [key(line) for line in whole_lines[start:start + size]] == target:
            return start
    return -1


def exact_replace(
    whole_lines: list[str],
    part_lines: list[str],
    replace_lines: list[str],
) -> Optional[list[str]]:
    """Replace the first window whose lines are identical to *part_lines*."""
    start = _find_window(whole_lines, part_lines)
    if start == -1:
        return None
    end = start + len(part_lines)
    return whole_lines[:start] + replace_lines + whole_lines[end:]


def flexible_whitespace_replace(
    whole_lines: list[str],
    part_lines: list[str],
    replace_lines: list[str],
) -> Optional[list[str]]:
    """Match ignoring leading whitespace, then re-indent the replacement.

    Every replacement line gets the leading whitespace of the first matched
    line in the file, in place of its own.
    """
    start = _find_window(whole_lines, part_lines, key=str.lstrip)
    if start == -1:
        return None
    leading = _LEADING_WS.match(whole_lines[start]).group(0)
    adjusted = [leading + line.lstrip() for line in replace_lines]
    end = start + len(part_lines)
    return whole_lines[:start] + adjusted + whole_lines[end:]


MATCH_STRATEGIES: list[MatchStrategy] = [
    exact_replace,
    flexible_whitespace_replace,
]


def apply_fragment(
    content: str,
    original: str,
    updated: str,
    strategies: Optional[list[MatchStrategy]] = None,
) -> Optional[str]:
    """Return *content* with *original* replaced by *updated*, or None.

    A blank *original* against empty *content* is a new file and yields
    *updated* unchanged.
    """
    if not original.strip() and not content:
        return updated

    whole_lines = content.split("\n")
    part_lines = original.split("\n")
    replace_lines = updated.split("\n")

    for strategy in strategies or MATCH_STRATEGIES:
        result = strategy(whole_lines, part_lines, replace_lines)
        if result is not None:
            return "\n".join(result)
    return None
