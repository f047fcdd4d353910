"""
Edit metrics — records the outcome of each application pass in a JSONL log.
"""

from __future__ import annotations

import json
import logging
import os
from collections import Counter
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_METRICS_DIR = ".patchagent"
_METRICS_FILE = "edit_metrics.jsonl"


def _metrics_path(project_root: str | None = None) -> str:
    """Return the absolute path to the metrics file."""
    base = project_root or os.getcwd()
    return os.path.join(base, _METRICS_DIR, _METRICS_FILE)


def log_edit_metric(data: dict, project_root: str | None = None) -> None:
    """Append a single pass entry to the JSONL log.

    Parameters
    ----------
    data:
        Fields to log (edits, edits_passed, edits_failed, failure_kinds...).
    project_root:
        Optional project root directory. Defaults to CWD.
    """
    path = _metrics_path(project_root)
    entry = {"timestamp": datetime.now(timezone.utc).isoformat()}
    entry.update(data)

    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError as exc:
        logger.warning("[PatchApply] Failed to write metrics: %s", exc)


def read_edit_stats(
    last_n: int = 50,
    project_root: str | None = None,
) -> dict:
    """Compute rolling statistics over the most recent passes.

    Returns
    -------
    dict
        ``total_passes``, ``edits_passed``, ``edits_failed``,
        ``success_rate`` (percent of passes without failures) and
        ``failure_kinds`` (counts per failure kind).
    """
    path = _metrics_path(project_root)

    entries: list[dict] = []
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(json.loads(line))
                    except json.JSONDecodeError:
                        continue
        except OSError as exc:
            logger.warning("[PatchApply] Failed to read metrics: %s", exc)

    entries = entries[-last_n:]
    if not entries:
        return {
            "total_passes": 0,
            "edits_passed": 0,
            "edits_failed": 0,
            "success_rate": 0.0,
            "failure_kinds": {},
        }

    total = len(entries)
    clean = sum(1 for e in entries if e.get("edits_failed", 0) == 0)
    kinds: Counter = Counter()
    for e in entries:
        kinds.update(e.get("failure_kinds") or {})

    return {
        "total_passes": total,
        "edits_passed": sum(e.get("edits_passed", 0) for e in entries),
        "edits_failed": sum(e.get("edits_failed", 0) for e in entries),
        "success_rate": clean / total * 100,
        "failure_kinds": dict(kinds.most_common()),
    }
