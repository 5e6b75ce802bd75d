from __future__ import annotations

"""
Operation Domain Data Models.

Defines the result objects exchanged between the isolation/fork engines and
the interface layer, together with the factory functions that build them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# -----------------------------------------------------------------------------
# FORK REPORT
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FileChange:
    """
    Replacement count of a single rewritten file.

    Attributes:
        path: Root-relative path of the file (after any rename).
        replacements: Number of whole-word replacements made.
    """
    path: str
    replacements: int


@dataclass
class ForkReport:
    """
    Accumulated findings of a rename pass.

    Attributes:
        old_name: Identifier being replaced (without pseudo-isolation suffix).
        new_name: Identifier written in its place.
        changed_files: Files whose contents were rewritten.
        renamed_files: (old path, new path) pairs.
        removed_files: Transient files deleted from the tree.
        skipped_files: Files not decoded, with the reason.
        warnings: Non-fatal antipattern findings.
    """
    old_name: str
    new_name: str
    changed_files: List[FileChange] = field(default_factory=list)
    renamed_files: List[tuple[str, str]] = field(default_factory=list)
    removed_files: List[str] = field(default_factory=list)
    skipped_files: List[tuple[str, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def total_replacements(self) -> int:
        return sum(c.replacements for c in self.changed_files)

    def to_summary(self) -> Dict[str, Any]:
        return {
            "old_name": self.old_name,
            "new_name": self.new_name,
            "files_changed": len(self.changed_files),
            "replacements": self.total_replacements,
            "changed_files": {c.path: c.replacements for c in self.changed_files},
            "renamed_files": [list(pair) for pair in self.renamed_files],
            "removed_files": list(self.removed_files),
            "skipped_files": [list(pair) for pair in self.skipped_files],
            "warnings": list(self.warnings),
        }

# -----------------------------------------------------------------------------
# OPERATION RESULT
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class OperationResult:
    """
    Unified result object of an isolation or fork execution.

    Attributes:
        ok: Flag indicating success or failure.
        operation: Operation identifier ('isolate' or 'fork').
        error: Descriptive message in case of failure.
        error_type: Class name of the failure, empty on success.
        error_path: Offending path attached to the failure, if any.
        source: Solution directory or archive processed.
        target: Directory or archive produced.
        solution_name: Resolved solution name written to the target.
        tag: Tag used for isolation, if any.
        files_written: Number of files written under the target.
        summary: Operation specific statistics.
    """
    ok: bool
    operation: str
    error: str
    source: str
    target: str

    error_type: str = ""
    error_path: str = ""
    solution_name: str = ""
    tag: str = ""
    files_written: int = 0

    summary: Dict[str, Any] = field(default_factory=dict)

# -----------------------------------------------------------------------------
# FACTORY FUNCTIONS
# -----------------------------------------------------------------------------

def create_error_result(
        operation: str,
        error: Exception,
        source: str,
        target: str,
        summary_extra: Optional[Dict[str, Any]] = None,
) -> OperationResult:
    """
    Create a failed operation result instance.

    Args:
        operation: Operation identifier.
        error: The exception that aborted the operation.
        source: Source location.
        target: Requested target location.
        summary_extra: Additional metadata for the summary payload.

    Returns:
        OperationResult: An immutable error result object.
    """
    return OperationResult(
        ok=False,
        operation=operation,
        error=str(error),
        error_type=type(error).__name__,
        error_path=str(getattr(error, "path", None) or getattr(error, "filename", None) or ""),
        source=source,
        target=target,
        summary=summary_extra or {},
    )


def create_success_result(
        operation: str,
        source: str,
        target: str,
        solution_name: str,
        files_written: int,
        tag: str = "",
        summary_extra: Optional[Dict[str, Any]] = None,
) -> OperationResult:
    """
    Create a successful operation result instance.

    Args:
        operation: Operation identifier.
        source: Source location.
        target: Directory or archive produced.
        solution_name: Resolved solution name.
        files_written: Number of files written.
        tag: Tag used, if any.
        summary_extra: Final execution metrics.

    Returns:
        OperationResult: An immutable success result object.
    """
    return OperationResult(
        ok=True,
        operation=operation,
        error="",
        source=source,
        target=target,
        solution_name=solution_name,
        tag=tag,
        files_written=files_written,
        summary=summary_extra or {},
    )
