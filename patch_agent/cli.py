"""
CLI entry point — parse and apply SEARCH/REPLACE responses from the shell.
"""

import argparse
import json
import sys

from tqdm import tqdm

from .cli_display import compute_edit_diff, format_colored_diff, setup_logger
from .config import Config
from .editing.diff_parser import EditParseError, extract_edits
from .editing.feedback import format_failure_feedback
from .editing.metrics import read_edit_stats
from .editing.models import EditResults
from .editing.patch_applier import PatchApplier

EXIT_OK = 0
EXIT_FAILED_EDITS = 1
EXIT_PARSE_ERROR = 2


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patchagent",
        description="Apply LLM SEARCH/REPLACE edit blocks to a workspace",
    )
    parser.add_argument("--config", default=None,
                        help="Path to .patchagent.yaml config file")
    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Print the edits found in a response")
    p_parse.add_argument("response", help="Response file ('-' for stdin)")
    p_parse.add_argument("--mode", choices=["plain", "fenced"], default=None,
                         help="Block dialect (default: from config)")

    p_apply = sub.add_parser("apply", help="Apply one or more responses")
    p_apply.add_argument("responses", nargs="+",
                         help="Response files, applied in order ('-' for stdin)")
    p_apply.add_argument("--mode", choices=["plain", "fenced"], default=None,
                         help="Block dialect (default: from config)")
    p_apply.add_argument("--workspace", default=None,
                         help="Workspace root (default: from config)")
    p_apply.add_argument("--existing", nargs="*", default=[],
                         help="Paths that already exist and may not be created")
    p_apply.add_argument("--existing-from-disk", action="store_true",
                         help="Treat every file under the workspace as existing")
    p_apply.add_argument("--project-id", default="",
                         help="Tag used in log lines and metrics")
    p_apply.add_argument("--show-diff", action="store_true",
                         help="Print a colored diff for each passed file")

    p_stats = sub.add_parser("stats", help="Show edit metrics")
    p_stats.add_argument("--workspace", default=None,
                         help="Workspace root (default: from config)")
    p_stats.add_argument("--last", type=int, default=50,
                         help="Number of recent passes to include")
    return parser


def _cmd_parse(args, cfg: Config) -> int:
    mode = args.mode or cfg.DIFF_MODE
    try:
        edits = extract_edits(_read_text(args.response), mode)
    except EditParseError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_PARSE_ERROR
    print(json.dumps([e.to_dict() for e in edits], indent=2))
    return EXIT_OK


def _cmd_apply(args, cfg: Config) -> int:
    mode = args.mode or cfg.DIFF_MODE
    workspace = cfg.make_workspace(args.workspace)
    applier = PatchApplier(
        workspace,
        similarity_threshold=cfg.SIMILARITY_THRESHOLD,
        metrics_root=workspace.root if cfg.METRICS_ENABLED else None,
    )

    existing = list(args.existing)
    if args.existing_from_disk:
        existing.extend(workspace.list_files())

    results = EditResults()
    for response in tqdm(args.responses, unit="response", desc="Applying",
                         disable=len(args.responses) < 2):
        try:
            edits = extract_edits(_read_text(response), mode)
        except EditParseError as exc:
            print(f"{response}: {exc}", file=sys.stderr)
            return EXIT_PARSE_ERROR
        pass_results = applier.apply(existing, edits, args.project_id)
        existing.extend(e.path for e in pass_results.passed)
        results.extend(pass_results)

    for edit in results.passed:
        print(f"passed  {edit.path}")
        if args.show_diff:
            diff = compute_edit_diff(edit)
            if diff:
                print(format_colored_diff(diff))
    for failure in results.failed:
        print(f"failed  {failure.edit.path}")

    if results.failed:
        print()
        print(format_failure_feedback(results.failed))
        return EXIT_FAILED_EDITS
    return EXIT_OK


def _cmd_stats(args, cfg: Config) -> int:
    root = args.workspace or cfg.WORKSPACE_DIR
    stats = read_edit_stats(last_n=args.last, project_root=root)
    print(f"Passes:        {stats['total_passes']}")
    print(f"Edits passed:  {stats['edits_passed']}")
    print(f"Edits failed:  {stats['edits_failed']}")
    print(f"Clean passes:  {stats['success_rate']:.1f}%")
    for kind, count in stats["failure_kinds"].items():
        print(f"  {kind}: {count}")
    return EXIT_OK


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    cfg = Config.load(args.config)
    setup_logger(cfg.LOG_DIR)

    if args.command == "parse":
        return _cmd_parse(args, cfg)
    if args.command == "apply":
        return _cmd_apply(args, cfg)
    return _cmd_stats(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
