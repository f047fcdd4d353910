"""
Edit models — the structured form of SEARCH/REPLACE blocks and the outcome
of applying them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class DiffMode(str, enum.Enum):
    """Block dialects understood by the extractor."""
    PLAIN = "plain"
    FENCED = "fenced"

    @classmethod
    def coerce(cls, value: "DiffMode | str") -> "DiffMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown diff mode {value!r} (expected 'plain' or 'fenced')"
            ) from None


@dataclass(frozen=True)
class Edit:
    """One proposed change: replace ``original`` with ``updated`` in ``path``.

    A blank ``original`` means the edit creates a new file.
    """
    path: str
    original: str
    updated: str

    @property
    def is_new_file(self) -> bool:
        return not self.original.strip()

    def to_dict(self) -> dict:
        return {"path": self.path, "original": self.original, "updated": self.updated}


# Failure kinds, recorded in metrics
NO_MATCH = "no_match"
READ_ERROR = "read_error"
WRITE_ERROR = "write_error"
ALREADY_EXISTS = "already_exists"
PROCESSING_ERROR = "processing_error"


@dataclass(frozen=True)
class FailedEdit:
    """An edit that could not be applied, plus a diagnostic for the model."""
    edit: Edit
    error: str
    kind: str = NO_MATCH

    def to_dict(self) -> dict:
        return {"edit": self.edit.to_dict(), "error": self.error, "kind": self.kind}


@dataclass
class EditResults:
    """Passed/failed partition accumulated over one application pass."""
    passed: list[Edit] = field(default_factory=list)
    failed: list[FailedEdit] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def failed_paths(self) -> list[str]:
        return [f.edit.path for f in self.failed]

    def extend(self, other: "EditResults") -> None:
        self.passed.extend(other.passed)
        self.failed.extend(other.failed)

    def to_dict(self) -> dict:
        return {
            "passed": [e.to_dict() for e in self.passed],
            "failed": [f.to_dict() for f in self.failed],
        }
