from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema of the solutionkit subcommands and the
translation of parsed namespaces into configuration overrides.
"""

import argparse
from typing import Any, Dict

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def _common_options() -> argparse.ArgumentParser:
    """Options shared by every subcommand."""
    p = argparse.ArgumentParser(add_help=False)
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write the log to this file.",
    )
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore the persisted configuration.",
    )
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print the result as JSON.",
    )
    p.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress progress lines.",
    )
    return p


def _environment_options(p: argparse.ArgumentParser) -> None:
    """Environment source selection for commands that isolate."""
    group = p.add_mutually_exclusive_group()
    group.add_argument("--tag", default=None, help="Isolate with this tag.")
    group.add_argument("--stable", action="store_true", help="Isolate with the stable tag.")
    p.add_argument(
        "--env-file",
        dest="env_file",
        default=None,
        help="JSON environment file (used when no tag is given).",
    )


def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the solutionkit CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    common = _common_options()
    p = argparse.ArgumentParser(
        prog="solutionkit",
        description="Isolate, fork and package solution directories.",
    )
    sub = p.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    # --- isolate ---
    iso = sub.add_parser(
        "isolate",
        parents=[common],
        help="Resolve the ${...} expressions of a solution.",
    )
    iso.add_argument("source", help="Solution directory or .zip archive.")
    iso.add_argument("target", help="Empty target directory or .zip file.")
    _environment_options(iso)

    # --- fork ---
    fork = sub.add_parser(
        "fork",
        parents=[common],
        help="Copy a solution under a new name.",
    )
    fork.add_argument("source", help="Solution directory or .zip archive.")
    fork.add_argument("name", help="New solution name.")
    fork.add_argument(
        "-t", "--target",
        default=None,
        help="Target directory (default: ./<name>).",
    )

    # --- pack ---
    pack = sub.add_parser(
        "pack",
        parents=[common],
        help="Pack a solution directory into a .zip archive.",
    )
    pack.add_argument("source", help="Solution directory.")
    pack.add_argument(
        "-o", "--output",
        default=None,
        help="Archive file or directory (default: a temporary file).",
    )
    _environment_options(pack)

    # --- unpack ---
    unpack = sub.add_parser(
        "unpack",
        parents=[common],
        help="Extract a solution archive.",
    )
    unpack.add_argument("archive", help=".zip archive to extract.")
    unpack.add_argument("target", help="Target directory.")
    unpack.add_argument(
        "--skip-levels",
        dest="skip_levels",
        type=int,
        default=None,
        help="Leading directory levels to drop (default: from configuration).",
    )

    # --- show ---
    show = sub.add_parser(
        "show",
        parents=[common],
        help="Describe the annotated tree of a solution.",
    )
    show.add_argument("source", help="Solution directory or .zip archive.")

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into configuration overrides.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset.
    """
    overrides: Dict[str, Any] = {}

    if args.debug:
        overrides["log_level"] = "DEBUG"
    if args.log_file:
        overrides["log_file"] = args.log_file
    if args.quiet:
        overrides["quiet"] = True
    if getattr(args, "skip_levels", None) is not None:
        overrides["archive_skip_levels"] = args.skip_levels

    return overrides
