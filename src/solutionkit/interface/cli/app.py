from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration merging
(defaults, persisted overrides, command-line flags), dispatch to the
isolation/fork engines and archive codec, and result rendering.
"""

import argparse
import json
import os
import sys
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

from solutionkit.core.fork.engine import run_fork
from solutionkit.core.isolation.engine import IsolationContext, conditional_isolate, run_isolation
from solutionkit.core.sources import prepare_source
from solutionkit.core.tree.model import SolutionTree, describe_tree
from solutionkit.core.validator import validate_config
from solutionkit.domain.config import get_default_config, load_config
from solutionkit.domain.errors import SolutionError
from solutionkit.domain.operation_models import OperationResult
from solutionkit.infra.archive import pack_directory, unpack_archive
from solutionkit.infra.fs import normalize_path, remove_tree
from solutionkit.infra.logging import LoggingConfig, configure_logging, get_logger
from solutionkit.interface.cli import args as cli_args

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (0 success, 1 failure, 2 invalid input, 130 interrupted).
    """
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    base_conf = get_default_config() if args.use_defaults else load_config()
    raw_conf = dict(base_conf)
    raw_conf.update(cli_args.args_to_overrides(args))
    cfg, warnings = validate_config(raw_conf, strict=False)

    configure_logging(LoggingConfig(level=cfg["log_level"], console=True, log_file=cfg["log_file"] or None))
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    source = getattr(args, "source", None) or getattr(args, "archive", None)
    if not os.path.exists(source):
        msg = f"Input path does not exist: {source}"
        logger.error(msg)
        print(f"ERROR: {msg}", file=sys.stderr)
        return 2

    status = None if (cfg["quiet"] or args.json_output) else _print_status
    handler = _COMMANDS[args.command]

    try:
        return handler(args, cfg, status)
    except KeyboardInterrupt:
        logger.warning("Operation interrupted by user.")
        print("Interrupted.", file=sys.stderr)
        return 130

# -----------------------------------------------------------------------------
# COMMAND HANDLERS
# -----------------------------------------------------------------------------

def _cmd_isolate(args: argparse.Namespace, cfg: Dict[str, Any], status: Optional[Callable[[str], None]]) -> int:
    result = run_isolation(
        args.source,
        normalize_path(args.target, os.getcwd()),
        tag=args.tag,
        stable=args.stable,
        env_file=args.env_file,
        config=cfg,
        status=status,
    )
    return _render_result(result, args.json_output)


def _cmd_fork(args: argparse.Namespace, cfg: Dict[str, Any], status: Optional[Callable[[str], None]]) -> int:
    target = normalize_path(args.target, os.path.join(os.getcwd(), args.name.strip().lower()))
    result = run_fork(args.source, target, args.name, config=cfg, status=status)
    return _render_result(result, args.json_output)


def _cmd_pack(args: argparse.Namespace, cfg: Dict[str, Any], status: Optional[Callable[[str], None]]) -> int:
    context = IsolationContext.from_config(cfg, status=status)
    temp_dir = None
    try:
        solution_dir, temp_dir = conditional_isolate(
            args.source, context, tag=args.tag, stable=args.stable, env_file=args.env_file, cfg=cfg
        )
        archive = pack_directory(solution_dir, args.output)
    except (SolutionError, OSError) as e:
        return _render_failure(e, args.json_output)
    finally:
        remove_tree(temp_dir)

    _render_payload({"ok": True, "archive": archive}, args.json_output, f"Archive written: {archive}")
    return 0


def _cmd_unpack(args: argparse.Namespace, cfg: Dict[str, Any], status: Optional[Callable[[str], None]]) -> int:
    try:
        files = unpack_archive(args.archive, args.target, skip_levels=cfg["archive_skip_levels"])
    except (SolutionError, OSError) as e:
        return _render_failure(e, args.json_output)

    payload = {"ok": True, "target": args.target, "files": files}
    _render_payload(payload, args.json_output, f"Extracted {len(files)} files into {args.target}")
    return 0


def _cmd_show(args: argparse.Namespace, cfg: Dict[str, Any], status: Optional[Callable[[str], None]]) -> int:
    temp_dir = None
    try:
        solution_dir, temp_dir = prepare_source(args.source, cfg["archive_skip_levels"])
        tree = SolutionTree.build(solution_dir)
    except (SolutionError, OSError) as e:
        return _render_failure(e, args.json_output)
    finally:
        remove_tree(temp_dir)

    lines = describe_tree(tree)
    payload = {"ok": True, "solution": tree.manifest.name, "files": tree.file_count, "description": lines}
    _render_payload(payload, args.json_output, "\n".join(lines))
    return 0


_COMMANDS: Dict[str, Callable[[argparse.Namespace, Dict[str, Any], Optional[Callable[[str], None]]], int]] = {
    "isolate": _cmd_isolate,
    "fork": _cmd_fork,
    "pack": _cmd_pack,
    "unpack": _cmd_unpack,
    "show": _cmd_show,
}

# -----------------------------------------------------------------------------
# VIEW RENDERING
# -----------------------------------------------------------------------------

def _print_status(message: str) -> None:
    print(message)


def _render_payload(payload: Dict[str, Any], json_output: bool, text: str) -> None:
    if json_output:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(text)


def _render_failure(error: Exception, json_output: bool) -> int:
    logger.error(f"Operation failed: {error}")
    if json_output:
        print(json.dumps({"ok": False, "error": str(error), "error_type": type(error).__name__}, indent=2))
    else:
        print(f"ERROR: {error}", file=sys.stderr)
    return 1


def _render_result(result: OperationResult, json_output: bool) -> int:
    if json_output:
        print(json.dumps(asdict(result), ensure_ascii=False, indent=2))
    else:
        _print_human_summary(result)
    return 0 if result.ok else 1


def _print_human_summary(result: OperationResult) -> None:
    """
    Print an OperationResult as a terminal report.

    Args:
        result: The operation result to render.
    """
    if not result.ok:
        where = f" ({result.error_path})" if result.error_path else ""
        print(f"ERROR [{result.error_type}]{where}: {result.error}", file=sys.stderr)
        return

    summary = result.summary
    print(f"SUCCESS: {result.operation} of solution '{result.solution_name}'")
    print(f"Target: {result.target}")
    print(f"Files written: {result.files_written}")
    if result.tag:
        print(f"Tag: {result.tag}")
    if "expressions_replaced" in summary:
        print(f"Expressions replaced: {summary['expressions_replaced']}")
    if "replacements" in summary:
        print(f"Files changed: {summary['files_changed']} ({summary['replacements']} replacements)")
        for old, new in summary.get("renamed_files", []):
            print(f"  - renamed: {old} -> {new}")
        for path, reason in summary.get("skipped_files", []):
            print(f"  - skipped: {path} ({reason})")
    for warning in summary.get("warnings", []):
        print(f"WARNING: {warning}")

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
