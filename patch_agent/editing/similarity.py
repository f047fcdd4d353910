"""
Similarity suggester — finds the chunk of a file that most resembles a
SEARCH section that failed to match, to quote back to the model.
"""

from __future__ import annotations

from typing import Optional

DEFAULT_THRESHOLD = 0.6


def similarity_ratio(a: list[str], b: list[str]) -> float:
    """Fraction of index-aligned identical lines.

    Position-sensitive: ``a[i]`` is only compared with ``b[i]``. Two empty
    lists are fully similar.
    """
    total = max(len(a), len(b))
    if total == 0:
        return 1.0
    matches = sum(1 for x, y in zip(a, b) if x == y)
    return matches / total


def find_similar_lines(
    search_text: str,
    content: str,
    threshold: float = DEFAULT_THRESHOLD,
) -> Optional[str]:
    """Return the window of *content* most similar to *search_text*.

    The window has as many lines as *search_text*. The first window with
    the highest ratio wins; ``None`` is returned when that ratio is below
    *threshold* or when *content* is shorter than the search text.
    """
    search_lines = search_text.split("\n")
    content_lines = content.split("\n")
    size = len(search_lines)

    best_ratio = 0.0
    best_chunk: Optional[list[str]] = None

    for start in range(len(content_lines) - size + 1):
        chunk = content_lines[start:start + size]
        ratio = similarity_ratio(search_lines, chunk)
        if ratio > best_ratio:
            best_ratio = ratio
            best_chunk = chunk

    if best_chunk is None or best_ratio < threshold:
        return None
    return "\n".join(best_chunk)
