from __future__ import annotations

"""
Solution Error Taxonomy.

Every failure raised by the core derives from SolutionError. All of them are
fatal to the running operation; the operation entry points convert them into
failed OperationResult instances.
"""

from typing import Optional


class SolutionError(Exception):
    """
    Base class of all solution processing failures.

    Attributes:
        path: Offending file or directory, when one is known.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


# -----------------------------------------------------------------------------
# MANIFEST & TREE
# -----------------------------------------------------------------------------

class ManifestUnreadable(SolutionError):
    """The manifest file is missing or cannot be read."""


class ManifestMalformed(SolutionError):
    """The manifest cannot be decoded or has an invalid structure."""


class AmbiguousObjectDeclaration(ManifestMalformed):
    """An object declaration sets both or neither of objectsFile/objectsDir."""


class ComponentNotFound(SolutionError):
    """A file or directory declared in the manifest is absent from the tree."""


class TreeWalkError(SolutionError):
    """A walk left the tree in an inconsistent state (e.g. duplicate names)."""


class UnsupportedEncoding(SolutionError):
    """A file encoding cannot be decoded structurally."""


class EncodeDecodeError(SolutionError):
    """A document failed to decode or re-encode."""


# -----------------------------------------------------------------------------
# ISOLATION
# -----------------------------------------------------------------------------

class AmbiguousEnvironmentSource(SolutionError):
    """Neither or both of a tag and an environment file were supplied."""


class InvalidTag(SolutionError):
    """A tag does not satisfy the tag naming rules."""


class ExpressionError(SolutionError):
    """
    Base class for marker expression failures.

    Attributes:
        file: Root-relative file containing the expression.
        expr: Expression body as written inside the marker.
    """

    def __init__(self, message: str, file: str = "", expr: str = "") -> None:
        super().__init__(message, path=file or None)
        self.file = file
        self.expr = expr


class ExpressionCompileError(ExpressionError):
    """An expression body could not be parsed."""


class ExpressionEvalError(ExpressionError):
    """An expression failed during evaluation or produced no value."""


# -----------------------------------------------------------------------------
# FORK & IO
# -----------------------------------------------------------------------------

class InvalidSolutionName(SolutionError):
    """A new solution name does not satisfy the naming rules."""


class InvalidTarget(SolutionError):
    """A source or target location is unusable for the operation."""


class ArchiveError(SolutionError):
    """An archive is unreadable or has an unsupported layout."""


class PathTraversalRejected(ArchiveError):
    """An archive entry would be extracted outside the target root."""
