"""
CLI display — file logging setup and colored before/after diffs of applied
edits.
"""

from __future__ import annotations

import difflib
import logging
import os
from datetime import datetime

from .editing.models import Edit


def setup_logger(log_dir: str = ".patchagent/logs") -> logging.Logger:
    """Creates a file logger for the ``patch_agent`` package.

    Calling it again with the same *log_dir* reuses the existing handler.
    """
    logger = logging.getLogger("patch_agent")
    logger.setLevel(logging.DEBUG)

    log_root = os.path.abspath(log_dir)
    for handler in logger.handlers:
        if (isinstance(handler, logging.FileHandler)
                and os.path.dirname(handler.baseFilename) == log_root):
            return logger

    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"patchagent_{timestamp}.log")

    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)

    return logger


def compute_edit_diff(edit: Edit) -> str | None:
    """Unified diff between a passed edit's original and updated text.

    Returns None when the content is unchanged.
    """
    if edit.original == edit.updated:
        return None

    diff = difflib.unified_diff(
        edit.original.splitlines(keepends=True),
        edit.updated.splitlines(keepends=True),
        fromfile=f"a/{edit.path}",
        tofile=f"b/{edit.path}",
        lineterm="",
    )
    diff_text = "\n".join(line.rstrip("\n") for line in diff)
    return diff_text if diff_text.strip() else None


def format_colored_diff(diff_text: str) -> str:
    """Add ANSI colors to a unified diff string.

    Green for additions (+), red for deletions (-), cyan for @@ hunks.
    """
    colored: list[str] = []
    for line in diff_text.splitlines():
        if line.startswith("+++") or line.startswith("---"):
            colored.append(f"\033[1m{line}\033[0m")  # bold
        elif line.startswith("@@"):
            colored.append(f"\033[36m{line}\033[0m")  # cyan
        elif line.startswith("+"):
            colored.append(f"\033[32m{line}\033[0m")  # green
        elif line.startswith("-"):
            colored.append(f"\033[31m{line}\033[0m")  # red
        else:
            colored.append(line)
    return "\n".join(colored)
