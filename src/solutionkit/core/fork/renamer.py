from __future__ import annotations

"""
Structural Renamer.

Renames a solution throughout an annotated tree. The old identifier is
replaced as a whole word, inside decoded document values only: keys are
never touched and files without a match keep their original bytes.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Pattern, Tuple

from solutionkit.core.tree.model import SolutionTree, normalize_relative_path
from solutionkit.domain.constants import PSEUDO_ISOLATION_SUFFIX
from solutionkit.domain.errors import EncodeDecodeError, SolutionError
from solutionkit.domain.operation_models import FileChange, ForkReport
from solutionkit.domain.tree_models import (
    FileEncoding,
    FileKind,
    SolutionFile,
    SolutionSubDirectory,
    WalkAction,
    join_relative,
)
from solutionkit.infra.documents import decode_document, encode_document

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


@dataclass
class ForkContext:
    """
    Settings of a fork.

    Attributes:
        namespace_object_type: Object type whose file is named after the solution.
        tag_file_name: Transient root file removed from the fork.
        json_indent: Indentation of re-encoded JSON files.
        archive_skip_levels: Levels dropped when unpacking archive sources.
        status: Optional receiver of user facing progress lines.
    """
    namespace_object_type: str
    tag_file_name: str
    json_indent: int
    archive_skip_levels: int
    status: Optional[StatusCallback] = None

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any], status: Optional[StatusCallback] = None) -> "ForkContext":
        return cls(
            namespace_object_type=cfg["namespace_object_type"],
            tag_file_name=cfg["tag_file_name"],
            json_indent=cfg["json_indent"],
            archive_skip_levels=cfg["archive_skip_levels"],
            status=status,
        )

    def report(self, message: str) -> None:
        logger.info(message)
        if self.status:
            self.status(message)


# ==============================================================================
# IDENTIFIER MATCHING
# ==============================================================================

def split_pseudo_isolation(name: str) -> Tuple[str, bool]:
    """Strip the pseudo-isolation suffix from a solution name, if present."""
    if name.endswith(PSEUDO_ISOLATION_SUFFIX):
        return name[:-len(PSEUDO_ISOLATION_SUFFIX)], True
    return name, False


def compile_identifier_pattern(old_name: str) -> Pattern[str]:
    return re.compile(r"\b" + re.escape(old_name) + r"\b", flags=re.ASCII)


def replace_in_values(value: Any, pattern: Pattern[str], new_name: str, key_path: str = "") -> Tuple[Any, int]:
    """
    Replace whole-word identifier matches in the scalar strings of a document.

    Mapping keys are kept as is; only their values are visited.

    Args:
        value: Decoded document (or a part of it).
        pattern: Compiled identifier pattern.
        new_name: Replacement identifier.
        key_path: Dotted path of value, used in log records.

    Returns:
        Tuple[Any, int]: The document with replacements, and their count.
    """
    if isinstance(value, dict):
        total = 0
        for k in value:
            child_path = f"{key_path}.{k}" if key_path else str(k)
            value[k], count = replace_in_values(value[k], pattern, new_name, child_path)
            total += count
        return value, total

    if isinstance(value, list):
        total = 0
        for i, item in enumerate(value):
            value[i], count = replace_in_values(item, pattern, new_name, f"{key_path}[{i}]")
            total += count
        return value, total

    if isinstance(value, str):
        new_value, count = pattern.subn(lambda _m: new_name, value)
        if count:
            logger.debug(f"Replaced solution name at {key_path or '<root>'}: {value!r} -> {new_value!r}")
        return new_value, count

    return value, 0


def fork_file_contents(
        contents: bytes,
        encoding: FileEncoding,
        pattern: Pattern[str],
        new_name: str,
        source: str,
        json_indent: int,
) -> Tuple[bytes, int]:
    """
    Rename the identifier inside a single file buffer.

    Returns:
        Tuple[bytes, int]: New contents (the original bytes when nothing was
            replaced) and the number of replacements.

    Raises:
        EncodeDecodeError: If the buffer cannot be decoded or re-encoded.
    """
    document = decode_document(contents, encoding, source)
    document, count = replace_in_values(document, pattern, new_name)
    if count == 0:
        return contents, 0
    try:
        return encode_document(document, encoding, source, indent=json_indent), count
    except EncodeDecodeError as e:
        raise EncodeDecodeError(
            f"error re-encoding {source!r} with {count} modifications: {e}", path=source
        ) from e


# ==============================================================================
# TREE RENAME
# ==============================================================================

def rename_solution(tree: SolutionTree, new_name: str, context: ForkContext) -> ForkReport:
    """
    Rename the solution of an annotated tree in place.

    Args:
        tree: Tree built from the source solution.
        new_name: Validated new identifier.
        context: Fork settings.

    Returns:
        ForkReport: All changes and findings of the rename.

    Raises:
        EncodeDecodeError: If any file fails to decode or re-encode.
    """
    manifest = tree.manifest
    old_name, pseudo_isolated = split_pseudo_isolation(manifest.name)
    report = ForkReport(old_name=old_name, new_name=new_name)
    context.report(f"Forking {old_name!r} to {new_name!r}...")

    manifest.name = new_name + PSEUDO_ISOLATION_SUFFIX if pseudo_isolated else new_name
    pattern = compile_identifier_pattern(old_name)

    # 1. Transient files
    def _remove_special(sub: Optional[SolutionSubDirectory], sf: SolutionFile) -> Optional[WalkAction]:
        if sub is None and sf.name == context.tag_file_name:
            report.removed_files.append(sf.name)
            context.report(f"Removed special file {sf.name!r}")
            return WalkAction.DELETE
        return None

    tree.walk(_remove_special)

    # 2. Namespace file named after the solution
    def _rename_namespace(sub: Optional[SolutionSubDirectory], sf: SolutionFile) -> None:
        if (
                sf.kind != FileKind.OBJECT_TYPE
                or sf.object_type != context.namespace_object_type
                or sf.name != f"{old_name}.{sf.encoding.value}"
        ):
            return
        old_path = join_relative(sub, sf.name)
        sf.name = f"{new_name}.{sf.encoding.value}"
        new_path = join_relative(sub, sf.name)
        for obj in manifest.objects:
            if obj.objects_file and normalize_relative_path(obj.objects_file) == old_path:
                obj.objects_file = new_path
        report.renamed_files.append((old_path, new_path))
        context.report(f"Renamed namespace file {old_path!r} to {new_path!r}")

    tree.walk(_rename_namespace)

    # 3. Manifest object types
    for obj in manifest.objects:
        new_type, count = pattern.subn(lambda _m: new_name, obj.type)
        if count:
            logger.debug(f"Manifest object type {obj.type!r} -> {new_type!r}")
            obj.type = new_type

    # 4. File values
    def _fork_file(sub: Optional[SolutionSubDirectory], sf: SolutionFile) -> None:
        if sf.kind == FileKind.HIDDEN:
            return
        path = join_relative(sub, sf.name)
        if sf.encoding == FileEncoding.UNKNOWN:
            reason = "unknown encoding"
            report.skipped_files.append((path, reason))
            logger.info(f"Skipped {path}: {reason}")
            return
        try:
            contents, count = fork_file_contents(
                sf.contents, sf.encoding, pattern, new_name, path, context.json_indent
            )
        except SolutionError as e:
            raise EncodeDecodeError(f"error forking file {path!r}: {e}", path=path) from e
        if count == 0:
            logger.debug(f"No changes in file {path}")
            return
        sf.contents = contents
        report.changed_files.append(FileChange(path=path, replacements=count))
        context.report(f"Made {count} change{'' if count == 1 else 's'} in {path!r}")

    tree.walk(_fork_file)

    # 5. Identifier-bearing paths
    report.warnings.extend(find_identifier_paths(tree, pattern))
    for warning in report.warnings:
        logger.warning(warning)

    return report


def find_identifier_paths(tree: SolutionTree, pattern: Pattern[str]) -> List[str]:
    """
    List declared paths that embed the old identifier in their names.

    Returns:
        List[str]: One warning message per offending path.
    """
    warnings: List[str] = []
    declared = [(o.objects_dir, "objects directory") for o in tree.manifest.objects if o.objects_dir]
    declared += [(o.objects_file, "objects file") for o in tree.manifest.objects if o.objects_file]
    declared += [(t, "knowledge type file") for t in tree.manifest.types]

    for path, label in declared:
        if any(pattern.search(part) for part in normalize_relative_path(path).split("/")):
            warnings.append(
                f"The {label} {path!r} embeds the solution name; avoid naming files and "
                f"directories after the solution, it makes future forks harder"
            )
    return warnings
