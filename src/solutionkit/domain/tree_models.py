from __future__ import annotations

"""
Solution Tree Data Models.

Provides the node types of the in-memory solution tree: annotated files,
subdirectories and the roles the manifest assigns to them.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from solutionkit.domain.constants import EXTENSION_ENCODINGS

# -----------------------------------------------------------------------------
# ANNOTATION ENUMS
# -----------------------------------------------------------------------------

class FileKind(str, Enum):
    """Semantic role of a file, as assigned by the manifest."""
    UNKNOWN = "unknown"
    KNOWLEDGE_TYPE = "knowledge type"
    OBJECT_TYPE = "object"
    HIDDEN = "hidden"


class FileEncoding(str, Enum):
    """Document encoding derived from the file extension."""
    JSON = "json"
    YAML = "yaml"
    UNKNOWN = "unknown"

    @classmethod
    def from_file_name(cls, name: str) -> "FileEncoding":
        _, ext = os.path.splitext(name)
        return cls(EXTENSION_ENCODINGS.get(ext.lower(), cls.UNKNOWN.value))


class DirectoryRole(str, Enum):
    """Role of a subdirectory, as assigned by the manifest."""
    NONE = "none"
    OBJECTS_DIR = "objectsDir"


class WalkAction(Enum):
    """Per-file decision returned by a tree visitor."""
    CONTINUE = "continue"
    DELETE = "delete"

# -----------------------------------------------------------------------------
# STRUCTURAL COMPONENTS
# -----------------------------------------------------------------------------

@dataclass
class SolutionFile:
    """
    A file of the solution tree.

    Attributes:
        name: File name, unique within its parent directory.
        contents: Raw file bytes.
        kind: Role assigned by the manifest.
        object_type: Declared object type (only for OBJECT_TYPE files).
        encoding: Encoding derived from the extension.
    """
    name: str
    contents: bytes = b""
    kind: FileKind = FileKind.UNKNOWN
    object_type: Optional[str] = None
    encoding: FileEncoding = FileEncoding.UNKNOWN

    def __str__(self) -> str:
        return f"{self.name!r} (kind {self.kind.value!r}, object type {self.object_type!r}, format {self.encoding.value!r})"


@dataclass
class SolutionSubDirectory:
    """
    A subdirectory of the solution tree.

    Attributes:
        path: Path relative to the tree root, using '/' separators.
        role: Role assigned by the manifest.
        object_type: Declared object type (only for OBJECTS_DIR directories).
        files: Files located directly in this directory.
    """
    path: str
    role: DirectoryRole = DirectoryRole.NONE
    object_type: Optional[str] = None
    files: List[SolutionFile] = field(default_factory=list)

    def find_file(self, name: str) -> Optional[SolutionFile]:
        return next((f for f in self.files if f.name == name), None)

    def __str__(self) -> str:
        return f"{self.path!r} (role {self.role.value!r}, object type {self.object_type!r}, {len(self.files)} files)"


def join_relative(directory: Optional[SolutionSubDirectory], file_name: str) -> str:
    """Build the root-relative path of a file, '/'-separated."""
    if directory is None:
        return file_name
    return f"{directory.path}/{file_name}"
