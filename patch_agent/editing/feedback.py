"""
Edit loop — feeds failed edits back to the model until they apply or the
attempt budget runs out.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .diff_parser import EditParseError, extract_edits
from .models import DiffMode, EditResults, FailedEdit
from .patch_applier import PatchApplier
from .workspace import normalize_path

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10

# Called with None for the first response, then with corrective feedback
Generate = Callable[[Optional[str]], str]


class EditRetriesExhausted(RuntimeError):
    """Raised when edits still fail after the last allowed attempt."""

    def __init__(self, attempts: int, results: EditResults, last_feedback: str):
        self.attempts = attempts
        self.results = results
        self.last_feedback = last_feedback
        super().__init__(
            f"Edits still failing after {attempts} attempt(s): "
            f"{len(results.failed)} failed"
        )


def format_failure_feedback(failed: list[FailedEdit]) -> str:
    """Render failed edits as a corrective prompt for the next model turn."""
    details = "\n\n".join(
        f"Failed to edit {f.edit.path}:\n{f.error}" for f in failed
    )
    return (
        "Some edits failed. Please fix the following issues and try again:\n"
        f"{details}\n\n"
        "Please, return the fixed files only.\n"
        "Important: You MUST NOT rewrite the files that passed."
    )


def format_parse_feedback(error: EditParseError) -> str:
    return (
        "Your edits could not be parsed:\n"
        f"{error}\n\n"
        "Please resend every SEARCH/REPLACE block using the required format."
    )


class EditLoop:
    """Drive generate -> extract -> apply with a bounded number of attempts."""

    def __init__(
        self,
        applier: PatchApplier,
        generate: Generate,
        mode: DiffMode | str = DiffMode.PLAIN,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        project_id: str = "",
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._applier = applier
        self._generate = generate
        self._mode = DiffMode.coerce(mode)
        self._max_attempts = max_attempts
        self._project_id = project_id

    def run(self, existing_files: list[str]) -> EditResults:
        """Run until no failures remain.

        Returns the passed edits of every attempt. Raises
        ``EditRetriesExhausted`` (carrying the same accumulated results,
        with the outstanding failures) when the budget is spent.
        """
        known = [normalize_path(p) for p in existing_files]
        results = EditResults()
        outstanding: list[FailedEdit] = []
        feedback: Optional[str] = None

        for attempt in range(1, self._max_attempts + 1):
            response = self._generate(feedback)
            try:
                edits = extract_edits(response, self._mode)
            except EditParseError as exc:
                logger.warning("[EditLoop] Attempt %d unparseable: %s", attempt, exc)
                feedback = format_parse_feedback(exc)
                continue

            attempt_results = self._applier.apply(known, edits, self._project_id)
            results.passed.extend(attempt_results.passed)

            fixed = {e.path for e in attempt_results.passed}
            known.extend(p for p in fixed if p not in known)
            # A file retried this attempt is superseded by its new outcome
            retried = fixed | {
                normalize_path(f.edit.path) for f in attempt_results.failed
            }
            outstanding = [
                f for f in outstanding if normalize_path(f.edit.path) not in retried
            ] + attempt_results.failed

            logger.info(
                "[EditLoop] Attempt %d/%d: %d passed, %d outstanding",
                attempt, self._max_attempts,
                len(attempt_results.passed), len(outstanding),
            )
            if not outstanding:
                return results
            feedback = format_failure_feedback(outstanding)

        results.failed = outstanding
        raise EditRetriesExhausted(self._max_attempts, results, feedback or "")
