from __future__ import annotations

"""
Isolation Engine.

Resolves the parametric markers of a solution against an environment and
writes a fully concrete copy of it:
1. Checks the source and target locations.
2. Builds the variable environment (tag or env file).
3. Resolves the manifest first and injects sys.solutionId.
4. Resolves every declared file into a new tree.
5. Writes the tree to the target directory, or packs it into an archive.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Set, Tuple

from solutionkit.core.expressions import CompiledExpression, EvalContext
from solutionkit.core.isolation.environment import (
    EnvironmentSource,
    build_environment,
    get_tag,
    resolve_environment_source,
    with_system_values,
)
from solutionkit.core.isolation.substitution import substitute_markers
from solutionkit.core.sources import prepare_source
from solutionkit.core.tree.model import SolutionTree, normalize_relative_path
from solutionkit.core.validator import validate_config
from solutionkit.domain.errors import InvalidTarget, ManifestMalformed, SolutionError
from solutionkit.domain.manifest import Manifest, parse_manifest, read_manifest, read_manifest_bytes
from solutionkit.domain.operation_models import OperationResult, create_error_result, create_success_result
from solutionkit.domain.tree_models import FileEncoding, join_relative
from solutionkit.infra.archive import pack_directory
from solutionkit.infra.fs import archive_base_name, is_archive_path, is_empty_dir, remove_tree

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


# ==============================================================================
# CONTEXT & OUTCOME
# ==============================================================================

@dataclass
class IsolationContext:
    """
    Settings and per-operation state of an isolation.

    Attributes:
        stable_tag: Tag reduced to an empty suffix.
        env_file_name: Default environment file of a solution directory.
        json_indent: Indentation of re-encoded JSON manifests.
        archive_skip_levels: Levels dropped when unpacking archive sources.
        status: Optional receiver of user facing progress lines.
        expression_cache: Compiled expressions, keyed by marker body.
    """
    stable_tag: str
    env_file_name: str
    json_indent: int
    archive_skip_levels: int
    status: Optional[StatusCallback] = None
    expression_cache: Dict[str, CompiledExpression] = field(default_factory=dict)

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], status: Optional[StatusCallback] = None) -> "IsolationContext":
        return cls(
            stable_tag=cfg["stable_tag"],
            env_file_name=cfg["env_file_name"],
            json_indent=cfg["json_indent"],
            archive_skip_levels=cfg["archive_skip_levels"],
            status=status,
        )

    def report(self, message: str) -> None:
        logger.info(message)
        if self.status:
            self.status(message)


@dataclass(frozen=True)
class IsolationOutcome:
    solution_name: str
    tag: str
    target: str
    files_written: int
    expressions_replaced: int


# ==============================================================================
# TWO-PHASE RESOLUTION
# ==============================================================================

def resolve_manifest(
        source_dir: str,
        env: Mapping[str, Any],
        context: IsolationContext,
) -> Tuple[Manifest, Dict[str, Any], int]:
    """
    Resolve the manifest markers and derive the augmented environment.

    Returns:
        Tuple[Manifest, Dict[str, Any], int]: Resolved manifest, environment
            including sys.solutionId, and the number of markers replaced.
    """
    file_name, raw = read_manifest_bytes(source_dir)
    eval_ctx = EvalContext(root=env, stable_tag=context.stable_tag)
    resolved, count = substitute_markers(raw, eval_ctx, file_name, context.expression_cache)
    manifest = parse_manifest(resolved, file_name)
    logger.debug(f"Resolved manifest name {manifest.name!r} ({count} expressions)")
    return manifest, with_system_values(env, manifest.name), count


def isolate_remaining_files(
        source_tree: SolutionTree,
        env: Mapping[str, Any],
        context: IsolationContext,
) -> Tuple[SolutionTree, int]:
    """
    Resolve every file declared by the manifest into a new tree.

    Files are visited once each: object files, then the files of every
    objects directory and its subdirectories, then knowledge-type files.

    Returns:
        Tuple[SolutionTree, int]: The isolated tree and the number of
            markers replaced.
    """
    manifest = source_tree.manifest
    eval_ctx = EvalContext(root=env, stable_tag=context.stable_tag)
    isolated = SolutionTree(manifest)
    visited: Set[str] = set()
    total = 0

    def _isolate(rel_path: str) -> None:
        nonlocal total
        if rel_path in visited:
            return
        visited.add(rel_path)
        _, sf = source_tree.get_file(rel_path)
        contents, count = substitute_markers(sf.contents, eval_ctx, rel_path, context.expression_cache)
        isolated.add_file(rel_path, contents)
        total += count

    for obj in manifest.objects:
        if obj.objects_file:
            _isolate(normalize_relative_path(obj.objects_file))
    for obj in manifest.objects:
        if obj.objects_dir:
            sub = source_tree.get_directory(obj.objects_dir)
            isolated.ensure_directory(sub.path)
            for path in sorted(source_tree.directories):
                if path != sub.path and not path.startswith(sub.path + "/"):
                    continue
                nested = source_tree.directories[path]
                isolated.ensure_directory(nested.path)
                for sf in nested.files:
                    _isolate(join_relative(nested, sf.name))
    for type_path in manifest.types:
        _isolate(normalize_relative_path(type_path))

    isolated.annotate()
    return isolated, total


# ==============================================================================
# PUBLIC API
# ==============================================================================

def check_isolation_target(target: str) -> None:
    """
    Validate an isolation target.

    Raises:
        InvalidTarget: If a target directory is not empty, or a target file
            lacks the '.zip' extension or a parent directory.
    """
    if os.path.isdir(target):
        if not is_empty_dir(target):
            raise InvalidTarget(f"target directory {target!r} must be empty", path=target)
        return
    if os.path.exists(target) and not is_archive_path(target):
        raise InvalidTarget(f"target {target!r} exists and is not a directory", path=target)
    if is_archive_path(target):
        parent = os.path.dirname(os.path.abspath(target))
        if not os.path.isdir(parent):
            raise InvalidTarget(f"parent directory of target file {target!r} does not exist", path=target)


def isolate_solution(
        source_dir: str,
        target: str,
        env_source: EnvironmentSource,
        context: IsolationContext,
) -> IsolationOutcome:
    """
    Isolate a solution directory into a target directory or '.zip' archive.

    Raises:
        SolutionError: On any manifest, tree, expression or target failure.
    """
    check_isolation_target(target)
    env = build_environment(tag=env_source.tag, env_file=env_source.env_file)
    context.report(f"Isolating {source_dir} with {env_source.describe()}")

    manifest, augmented_env, manifest_count = resolve_manifest(source_dir, env, context)
    source_tree = SolutionTree.build(source_dir, manifest=manifest)
    isolated, files_count = isolate_remaining_files(source_tree, augmented_env, context)
    replaced = manifest_count + files_count

    staging_parent: Optional[str] = None
    try:
        if is_archive_path(target):
            staging_parent = tempfile.mkdtemp(prefix="solutionkit-iso-")
            out_dir = os.path.join(staging_parent, archive_base_name(target))
        else:
            out_dir = target
        written = isolated.write(out_dir, json_indent=context.json_indent)
        if staging_parent:
            pack_directory(out_dir, target)
    finally:
        remove_tree(staging_parent)

    context.report(
        f"Isolated solution {manifest.name!r} into {target}: {written} files, {replaced} expressions replaced"
    )
    return IsolationOutcome(
        solution_name=manifest.name,
        tag=get_tag(env) or "",
        target=target,
        files_written=written,
        expressions_replaced=replaced,
    )


def run_isolation(
        source: str,
        target: str,
        *,
        tag: Optional[str] = None,
        stable: bool = False,
        env_file: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        status: Optional[StatusCallback] = None,
) -> OperationResult:
    """
    Execute an isolation and report it as an OperationResult.

    Args:
        source: Solution directory or '.zip' archive.
        target: Output directory (absent or empty) or '.zip' file.
        tag: Explicit tag.
        stable: Use the stable tag.
        env_file: Explicit environment file.
        config: Runtime configuration (raw or partial).
        status: Optional receiver of progress lines.

    Returns:
        OperationResult: Status and statistics of the operation.
    """
    logger.info("Isolation started.")
    cfg, warnings = validate_config(config, strict=False)
    for warning in warnings:
        logger.warning(f"Configuration Warning: {warning}")
    context = IsolationContext.from_config(cfg, status=status)

    temp_source: Optional[str] = None
    try:
        source_dir, temp_source = prepare_source(source, context.archive_skip_levels)
        env_source = resolve_environment_source(source_dir, tag=tag, stable=stable, env_file=env_file, cfg=cfg)
        outcome = isolate_solution(source_dir, target, env_source, context)
    except (SolutionError, OSError) as e:
        logger.error(f"Isolation failed: {e}")
        return create_error_result("isolate", e, source, target)
    finally:
        remove_tree(temp_source)

    return create_success_result(
        "isolate",
        source,
        target,
        solution_name=outcome.solution_name,
        files_written=outcome.files_written,
        tag=outcome.tag,
        summary_extra={"expressions_replaced": outcome.expressions_replaced},
    )


# ==============================================================================
# CONDITIONAL ISOLATION
# ==============================================================================

def needs_isolation(source_dir: str) -> bool:
    """
    Check whether a solution declares a parametric (pseudo-isolated) name.

    Raises:
        ManifestMalformed: If a YAML manifest uses a parametric name.
    """
    manifest = read_manifest(source_dir)
    if "${" not in manifest.name:
        return False
    if manifest.manifest_format != FileEncoding.JSON:
        raise ManifestMalformed(
            "parametric solution names are only supported in JSON manifests", path=manifest.file_name
        )
    return True


def conditional_isolate(
        source_dir: str,
        context: IsolationContext,
        tag: Optional[str] = None,
        stable: bool = False,
        env_file: Optional[str] = None,
        cfg: Optional[Mapping[str, Any]] = None,
) -> Tuple[str, Optional[str]]:
    """
    Isolate a solution only if its manifest name is parametric.

    Returns:
        Tuple[str, Optional[str]]: Directory to use and the temporary
            directory to remove afterwards (None when used as is).
    """
    if not needs_isolation(source_dir):
        if env_file or os.path.isfile(os.path.join(source_dir, context.env_file_name)):
            logger.warning(f"Solution in {source_dir} is not parametric; the env file is ignored")
        return source_dir, None

    env_source = resolve_environment_source(source_dir, tag=tag, stable=stable, env_file=env_file, cfg=cfg)
    temp_dir = tempfile.mkdtemp(prefix="solutionkit-iso-")
    target = os.path.join(temp_dir, os.path.basename(os.path.abspath(source_dir)))
    try:
        isolate_solution(source_dir, target, env_source, context)
    except BaseException:
        remove_tree(temp_dir)
        raise
    return target, temp_dir
