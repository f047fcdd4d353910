"""
Workspace — file read/write collaborators used by the patch applier.

Both operations report failures as result objects instead of raising, so
one unreadable or unwritable file never aborts a whole application pass.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadResult:
    content: str = ""
    success: bool = False
    error: str = ""


@dataclass(frozen=True)
class WriteResult:
    success: bool = False
    error: str = ""


class Workspace(Protocol):
    """Anything that can read and write whole files by relative path."""

    def read(self, path: str) -> ReadResult: ...

    def write(self, path: str, content: str) -> WriteResult: ...


def _copy_mode(target: str, tmp_path: str) -> None:
    """Give the temp file the target's mode, or the umask default for new files."""
    if os.path.exists(target):
        shutil.copymode(target, tmp_path)
        return
    umask = os.umask(0)
    os.umask(umask)
    os.chmod(tmp_path, 0o666 & ~umask)


def normalize_path(path: str) -> str:
    """Canonical key for an edit path: no leading ``/`` or ``./``."""
    name = path.strip()
    while name.startswith("./"):
        name = name[2:]
    return name.lstrip("/")


class LocalWorkspace:
    """Reads and writes files under *root* on the local filesystem."""

    def __init__(self, root: str = ".") -> None:
        self.root = os.path.abspath(root)

    def resolve(self, path: str) -> str:
        """Absolute path for *path* inside the root.

        Raises ``ValueError`` if the path escapes the root.
        """
        full = os.path.abspath(os.path.join(self.root, normalize_path(path)))
        if os.path.commonpath([self.root, full]) != self.root:
            raise ValueError(f"Path escapes workspace: {path}")
        return full

    def exists(self, path: str) -> bool:
        try:
            return os.path.isfile(self.resolve(path))
        except ValueError:
            return False

    def list_files(self) -> list[str]:
        """Relative paths of every file under the root (dot-dirs skipped)."""
        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for name in sorted(filenames):
                rel = os.path.relpath(os.path.join(dirpath, name), self.root)
                found.append(rel.replace(os.sep, "/"))
        return found

    def read(self, path: str) -> ReadResult:
        try:
            full = self.resolve(path)
            with open(full, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, ValueError, UnicodeDecodeError) as exc:
            logger.warning("[Workspace] Failed to read %s: %s", path, exc)
            return ReadResult(success=False, error=str(exc))
        return ReadResult(content=content, success=True)

    def write(self, path: str, content: str) -> WriteResult:
        """Write *content* atomically, creating parent directories."""
        try:
            full = self.resolve(path)
            os.makedirs(os.path.dirname(full), exist_ok=True)
            self._atomic_write(full, content)
        except (OSError, ValueError) as exc:
            logger.error("[Workspace] Failed to write %s: %s", path, exc)
            return WriteResult(success=False, error=str(exc))

        logger.info("[Workspace] Wrote %s (%d chars)", path, len(content))
        return WriteResult(success=True)

    @staticmethod
    def _atomic_write(full_path: str, content: str) -> None:
        fd, tmp_path = tempfile.mkstemp(
            dir=os.path.dirname(full_path), prefix=".patchagent_tmp_"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            _copy_mode(full_path, tmp_path)
            os.replace(tmp_path, full_path)
        except OSError:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise


class ShellWorkspace(LocalWorkspace):
    """Reads through ``cat`` in a subprocess; writes like ``LocalWorkspace``.

    An empty stdout counts as a failed read.
    """

    def __init__(self, root: str = ".", timeout: float = 30.0) -> None:
        super().__init__(root)
        self.timeout = timeout

    def read(self, path: str) -> ReadResult:
        try:
            full = self.resolve(path)
            proc = subprocess.run(
                ["cat", full],
                capture_output=True,
                timeout=self.timeout,
            )
        except (OSError, ValueError, subprocess.SubprocessError) as exc:
            logger.warning("[Workspace] cat failed for %s: %s", path, exc)
            return ReadResult(success=False, error=str(exc))

        if proc.returncode != 0 or not proc.stdout:
            error = proc.stderr.decode("utf-8", errors="replace").strip() or "Unknown error"
            logger.warning("[Workspace] Failed to read %s: %s", path, error)
            return ReadResult(success=False, error=error)

        try:
            content = proc.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("[Workspace] Failed to decode %s: %s", path, exc)
            return ReadResult(success=False, error=str(exc))
        return ReadResult(content=content, success=True)
