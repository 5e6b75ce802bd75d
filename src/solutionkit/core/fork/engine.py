from __future__ import annotations

"""
Fork Engine.

Produces a renamed copy of a solution:
1. Validates the new name and the target directory.
2. Loads the source tree (unpacking archive sources first).
3. Renames the solution throughout the tree.
4. Writes the renamed tree to the target directory.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from solutionkit.core.fork.renamer import ForkContext, StatusCallback, rename_solution
from solutionkit.core.sources import prepare_source
from solutionkit.core.tree.model import SolutionTree
from solutionkit.core.validator import validate_config
from solutionkit.domain.constants import SOLUTION_NAME_PATTERN
from solutionkit.domain.errors import InvalidSolutionName, InvalidTarget, SolutionError
from solutionkit.domain.operation_models import (
    ForkReport,
    OperationResult,
    create_error_result,
    create_success_result,
)
from solutionkit.infra.fs import is_empty_dir, remove_tree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForkOutcome:
    solution_name: str
    target: str
    files_written: int
    report: ForkReport


def normalize_solution_name(name: str) -> str:
    """
    Lower-case and validate a new solution name.

    Raises:
        InvalidSolutionName: If the name does not match the naming rules.
    """
    normalized = (name or "").strip().lower()
    if not SOLUTION_NAME_PATTERN.match(normalized):
        raise InvalidSolutionName(
            f"invalid solution name {name!r}: must start with a letter and contain only "
            f"lowercase letters, digits and underscores"
        )
    return normalized


def fork_solution(source_dir: str, target: str, new_name: str, context: ForkContext) -> ForkOutcome:
    """
    Fork a solution directory into target under a new name.

    Raises:
        SolutionError: On any naming, manifest, tree, decode or target failure.
    """
    new_name = normalize_solution_name(new_name)
    if not is_empty_dir(target):
        raise InvalidTarget(f"a non-empty directory {target!r} already exists", path=target)

    tree = SolutionTree.build(source_dir)
    report = rename_solution(tree, new_name, context)

    context.report(f"Writing solution {new_name!r}...")
    written = tree.write(target, json_indent=context.json_indent)
    context.report(
        f"Forked {report.old_name!r} into {target}: {len(report.changed_files)} files changed, "
        f"{report.total_replacements} replacements"
    )
    return ForkOutcome(solution_name=tree.manifest.name, target=target, files_written=written, report=report)


def run_fork(
        source: str,
        target: str,
        new_name: str,
        *,
        config: Optional[Dict[str, Any]] = None,
        status: Optional[StatusCallback] = None,
) -> OperationResult:
    """
    Execute a fork and report it as an OperationResult.

    Args:
        source: Solution directory or '.zip' archive.
        target: Output directory (absent or empty).
        new_name: New solution name.
        config: Runtime configuration (raw or partial).
        status: Optional receiver of progress lines.

    Returns:
        OperationResult: Status and fork report summary.
    """
    logger.info("Fork started.")
    cfg, warnings = validate_config(config, strict=False)
    for warning in warnings:
        logger.warning(f"Configuration Warning: {warning}")
    context = ForkContext.from_config(cfg, status=status)

    temp_source: Optional[str] = None
    try:
        source_dir, temp_source = prepare_source(source, context.archive_skip_levels)
        outcome = fork_solution(source_dir, target, new_name, context)
    except (SolutionError, OSError) as e:
        logger.error(f"Fork failed: {e}")
        return create_error_result("fork", e, source, target)
    finally:
        remove_tree(temp_source)

    return create_success_result(
        "fork",
        source,
        target,
        solution_name=outcome.solution_name,
        files_written=outcome.files_written,
        summary_extra=outcome.report.to_summary(),
    )
