"""
Patch applier — applies extracted edits to files in a workspace.

Edits are grouped by path and each group is applied, in extraction order,
to an in-memory buffer seeded with the file's current content. A group is
written back only if every edit in it matched; the first miss
short-circuits the group and leaves the file untouched. Groups are
independent of each other.
"""

from __future__ import annotations

import logging
from typing import Optional

from .matcher import apply_fragment
from .metrics import log_edit_metric
from .models import (
    ALREADY_EXISTS,
    NO_MATCH,
    PROCESSING_ERROR,
    READ_ERROR,
    WRITE_ERROR,
    Edit,
    EditResults,
    FailedEdit,
)
from .similarity import DEFAULT_THRESHOLD, find_similar_lines
from .workspace import Workspace, normalize_path

logger = logging.getLogger(__name__)

_EXACT_MATCH_HINT = (
    "The SEARCH section must exactly match an existing block of lines "
    "including all white space, comments, indentation, docstrings, etc\n"
)


def group_edits(edits: list[Edit]) -> dict[str, list[Edit]]:
    """Group edits by normalized path, keeping arrival order in each group."""
    groups: dict[str, list[Edit]] = {}
    for edit in edits:
        groups.setdefault(normalize_path(edit.path), []).append(edit)
    return groups


def build_mismatch_error(
    edit: Edit,
    content: str,
    threshold: float = DEFAULT_THRESHOLD,
) -> str:
    """Diagnostic for an edit whose SEARCH section was not found in *content*."""
    message = f"Failed to apply edit to {edit.path}\n" + _EXACT_MATCH_HINT

    similar = find_similar_lines(edit.original, content, threshold=threshold)
    if similar:
        message += f"\nDid you mean to match these lines?\n{similar}\n"

    replacement = edit.updated.strip()
    if replacement and replacement in content:
        message += (
            "\nAre you sure you need this SEARCH/REPLACE block?\n"
            f"The REPLACE lines are already in {edit.path}!\n"
        )
    return message


class PatchApplier:
    """Apply SEARCH/REPLACE edits against a workspace."""

    def __init__(
        self,
        workspace: Workspace,
        similarity_threshold: float = DEFAULT_THRESHOLD,
        metrics_root: Optional[str] = None,
    ) -> None:
        self._workspace = workspace
        self._threshold = similarity_threshold
        self._metrics_root = metrics_root

    def apply(
        self,
        existing_files: list[str],
        edits: list[Edit],
        project_id: str = "",
    ) -> EditResults:
        """Apply *edits* and return the passed/failed partition.

        Parameters
        ----------
        existing_files:
            Paths already tracked for the project. A new-file edit for any
            of them is rejected.
        edits:
            Edits in extraction order.
        project_id:
            Only used to tag log lines.

        Returns
        -------
        EditResults
            Passed entries for modified files carry the whole original
            file content and the whole final content.
        """
        tag = f"[PatchApply:{project_id}]" if project_id else "[PatchApply]"
        groups = group_edits(edits)
        logger.info("%s Applying edits: %s", tag, ", ".join(groups) or "-")

        known = {normalize_path(p) for p in existing_files}
        results = EditResults()

        for path, group in groups.items():
            if not group:
                continue
            if group[0].is_new_file:
                self._create_file(path, group, known, results)
            else:
                self._modify_file(path, group, results)

        logger.info(
            "%s Done: %d passed, %d failed",
            tag, len(results.passed), len(results.failed),
        )
        if self._metrics_root is not None:
            self._record_metrics(project_id, edits, results)
        return results

    # ------------------------------------------------------------------
    # Per-file handling
    # ------------------------------------------------------------------

    def _create_file(
        self,
        path: str,
        group: list[Edit],
        known: set[str],
        results: EditResults,
    ) -> None:
        first = group[0]
        if path in known:
            results.failed.append(FailedEdit(
                first, f"Cannot create {path} - file already exists", ALREADY_EXISTS
            ))
            logger.warning("[PatchApply] Refusing to recreate existing %s", path)
            return

        content = self._run_group(first.updated, group[1:], results)
        if content is None:
            return
        if not self._write(path, content, first, results):
            return

        if len(group) == 1:
            results.passed.append(Edit(path, first.original, first.updated))
        else:
            results.passed.append(Edit(path, "", content))
        logger.info("[PatchApply] Created %s", path)

    def _modify_file(
        self,
        path: str,
        group: list[Edit],
        results: EditResults,
    ) -> None:
        first = group[0]
        read = self._workspace.read(path)
        if not read.success or not read.content:
            details = read.error or "Unknown error"
            results.failed.append(FailedEdit(
                first, f"Error reading {path}: {details}", READ_ERROR
            ))
            logger.warning("[PatchApply] Failed to read %s: %s", path, details)
            return

        content = self._run_group(read.content, group, results)
        if content is None:
            return
        if not self._write(path, content, first, results):
            return

        results.passed.append(Edit(path, read.content, content))
        logger.info("[PatchApply] Updated %s (%d edit(s))", path, len(group))

    def _run_group(
        self,
        content: str,
        group: list[Edit],
        results: EditResults,
    ) -> Optional[str]:
        """Apply *group* in order to *content*; None after the first failure."""
        for edit in group:
            try:
                updated = apply_fragment(content, edit.original, edit.updated)
            except Exception as exc:
                results.failed.append(FailedEdit(
                    edit, f"Error processing {edit.path}: {exc}", PROCESSING_ERROR
                ))
                logger.error("[PatchApply] Error processing %s: %s", edit.path, exc)
                return None

            if updated is None:
                results.failed.append(FailedEdit(
                    edit, build_mismatch_error(edit, content, self._threshold), NO_MATCH
                ))
                logger.warning("[PatchApply] SEARCH block not found in %s", edit.path)
                return None
            content = updated
        return content

    def _write(
        self,
        path: str,
        content: str,
        first: Edit,
        results: EditResults,
    ) -> bool:
        outcome = self._workspace.write(path, content)
        if not outcome.success:
            results.failed.append(FailedEdit(
                first, f"Failed to write {path}", WRITE_ERROR
            ))
            return False
        return True

    def _record_metrics(
        self,
        project_id: str,
        edits: list[Edit],
        results: EditResults,
    ) -> None:
        kinds: dict[str, int] = {}
        for failure in results.failed:
            kinds[failure.kind] = kinds.get(failure.kind, 0) + 1
        log_edit_metric(
            {
                "project_id": project_id,
                "edits": len(edits),
                "files": len(group_edits(edits)),
                "edits_passed": len(results.passed),
                "edits_failed": len(results.failed),
                "failure_kinds": kinds,
            },
            project_root=self._metrics_root,
        )


def apply_edits(
    existing_files: list[str],
    edits: list[Edit],
    project_id: str,
    workspace: Workspace,
    similarity_threshold: float = DEFAULT_THRESHOLD,
) -> EditResults:
    """Functional form of ``PatchApplier.apply``."""
    applier = PatchApplier(workspace, similarity_threshold=similarity_threshold)
    return applier.apply(existing_files, edits, project_id)
