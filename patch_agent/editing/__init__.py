"""SEARCH/REPLACE editing — parse LLM diff blocks and apply them to files."""

from .markers import LineKind, classify_line
from .models import DiffMode, Edit, EditResults, FailedEdit
from .diff_parser import DiffParser, EditParseError, extract_edits, find_filename
from .matcher import MATCH_STRATEGIES, apply_fragment
from .similarity import find_similar_lines
from .workspace import LocalWorkspace, ReadResult, ShellWorkspace, WriteResult, normalize_path
from .patch_applier import PatchApplier, apply_edits
from .feedback import EditLoop, EditRetriesExhausted, format_failure_feedback
from .metrics import log_edit_metric, read_edit_stats

__all__ = [
    "LineKind", "classify_line",
    "DiffMode", "Edit", "EditResults", "FailedEdit",
    "DiffParser", "EditParseError", "extract_edits", "find_filename",
    "MATCH_STRATEGIES", "apply_fragment",
    "find_similar_lines",
    "LocalWorkspace", "ShellWorkspace", "ReadResult", "WriteResult", "normalize_path",
    "PatchApplier", "apply_edits",
    "EditLoop", "EditRetriesExhausted", "format_failure_feedback",
    "log_edit_metric", "read_edit_stats",
]
