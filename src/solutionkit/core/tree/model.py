from __future__ import annotations

"""
Solution Tree Model.

In-memory representation of a solution directory: the parsed manifest, the
root files and the subdirectories, each file annotated with the role the
manifest assigns to it. Provides the visitor walk shared by the isolation
and fork engines, and the write-back to disk.
"""

import logging
import os
import posixpath
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from solutionkit.domain.errors import (
    AmbiguousObjectDeclaration,
    ComponentNotFound,
    InvalidTarget,
    TreeWalkError,
)
from solutionkit.domain.manifest import Manifest, find_manifest_file, read_manifest
from solutionkit.domain.tree_models import (
    DirectoryRole,
    FileEncoding,
    FileKind,
    SolutionFile,
    SolutionSubDirectory,
    WalkAction,
    join_relative,
)
from solutionkit.core.tree.scanner import scan_solution_directory
from solutionkit.infra.fs import is_empty_dir

logger = logging.getLogger(__name__)

# Receives the parent directory (None for root files) and the file
Visitor = Callable[[Optional[SolutionSubDirectory], SolutionFile], Optional[WalkAction]]


def normalize_relative_path(path: str) -> str:
    """Normalize a manifest-declared path to the tree's '/'-separated form."""
    p = posixpath.normpath(path.replace("\\", "/").strip())
    return "" if p == "." else p.lstrip("/")


class SolutionTree:
    """
    Aggregate root of a solution.

    Attributes:
        manifest: Parsed manifest of the solution.
        root_files: Files directly under the root (never the manifest itself).
        directories: Subdirectories keyed by root-relative path.
    """

    def __init__(
            self,
            manifest: Manifest,
            root_files: Optional[List[SolutionFile]] = None,
            directories: Optional[Dict[str, SolutionSubDirectory]] = None,
    ) -> None:
        self.manifest = manifest
        self.root_files: List[SolutionFile] = root_files or []
        self.directories: Dict[str, SolutionSubDirectory] = directories or {}

    # -------------------------------------------------------------------------
    # CONSTRUCTION
    # -------------------------------------------------------------------------

    @classmethod
    def build(cls, root_path: str, manifest: Optional[Manifest] = None) -> "SolutionTree":
        """
        Scan a solution directory and annotate it against its manifest.

        Args:
            root_path: Solution root directory.
            manifest: Manifest to annotate with; read from the root when None.

        Returns:
            SolutionTree: The annotated tree.

        Raises:
            ManifestUnreadable: If no manifest can be read.
            ManifestMalformed: If the manifest is invalid.
            ComponentNotFound: If a declared file or directory is missing.
        """
        if manifest is None:
            manifest = read_manifest(root_path)
        root_files, directories = scan_solution_directory(root_path, find_manifest_file(root_path))
        tree = cls(manifest, root_files, directories)
        tree.annotate()
        logger.debug(f"Built solution tree {manifest.name!r} from {root_path}")
        return tree

    def annotate(self) -> None:
        """
        Assign file kinds and directory roles from the manifest declarations.

        Knowledge types are marked first, then object declarations; the
        object type of each objects directory is then propagated to its files.
        """
        for type_path in self.manifest.types:
            _, sf = self.get_file(type_path)
            sf.kind = FileKind.KNOWLEDGE_TYPE

        declared_dirs: List[SolutionSubDirectory] = []
        for i, obj in enumerate(self.manifest.objects):
            if bool(obj.objects_file) == bool(obj.objects_dir):
                raise AmbiguousObjectDeclaration(
                    f"objects[{i}] ({obj.type!r}) must set exactly one of objectsFile and objectsDir",
                    path=self.manifest.file_name,
                )
            if obj.objects_file:
                _, sf = self.get_file(obj.objects_file)
                sf.kind = FileKind.OBJECT_TYPE
                sf.object_type = obj.type
            else:
                sub = self.get_directory(obj.objects_dir)
                sub.role = DirectoryRole.OBJECTS_DIR
                sub.object_type = obj.type
                declared_dirs.append(sub)

        for sub in declared_dirs:
            for sf in sub.files:
                sf.kind = FileKind.OBJECT_TYPE
                sf.object_type = sub.object_type

    # -------------------------------------------------------------------------
    # LOOKUP
    # -------------------------------------------------------------------------

    def get_directory(self, path: str) -> SolutionSubDirectory:
        sub = self.directories.get(normalize_relative_path(path))
        if sub is None:
            raise ComponentNotFound(f"directory {path!r} declared in the manifest not found", path=path)
        return sub

    def get_file(self, path: str) -> Tuple[Optional[SolutionSubDirectory], SolutionFile]:
        """
        Locate a file by its root-relative path.

        Raises:
            ComponentNotFound: If the file is not part of the tree.
        """
        rel = normalize_relative_path(path)
        dir_path, name = posixpath.split(rel)
        sf: Optional[SolutionFile] = None
        sub: Optional[SolutionSubDirectory] = None
        if not dir_path:
            sf = next((f for f in self.root_files if f.name == name), None)
        else:
            sub = self.directories.get(dir_path)
            sf = sub.find_file(name) if sub else None
        if sf is None:
            raise ComponentNotFound(f"file {path!r} declared in the manifest not found", path=path)
        return sub, sf

    def ensure_directory(self, path: str) -> SolutionSubDirectory:
        """Return the subdirectory at path, creating it (and its parents) if missing."""
        rel = normalize_relative_path(path)
        parent = posixpath.dirname(rel)
        if parent:
            self.ensure_directory(parent)
        sub = self.directories.get(rel)
        if sub is None:
            sub = SolutionSubDirectory(path=rel)
            self.directories[rel] = sub
        return sub

    def add_file(self, path: str, contents: bytes) -> SolutionFile:
        """Add a file at a root-relative path; the path must not exist yet."""
        rel = normalize_relative_path(path)
        dir_path, name = posixpath.split(rel)
        siblings = self.ensure_directory(dir_path).files if dir_path else self.root_files
        if any(f.name == name for f in siblings):
            raise TreeWalkError(f"duplicate file {rel!r} in solution tree", path=rel)
        sf = SolutionFile(name=name, contents=contents, encoding=FileEncoding.from_file_name(name))
        siblings.append(sf)
        return sf

    def iter_files(self) -> Iterator[Tuple[Optional[SolutionSubDirectory], SolutionFile]]:
        """Yield every file: root files first, then directories in lexical order."""
        for sf in list(self.root_files):
            yield None, sf
        for path in sorted(self.directories):
            sub = self.directories[path]
            for sf in list(sub.files):
                yield sub, sf

    @property
    def file_count(self) -> int:
        return len(self.root_files) + sum(len(d.files) for d in self.directories.values())

    # -------------------------------------------------------------------------
    # TRAVERSAL
    # -------------------------------------------------------------------------

    def walk(self, visitor: Visitor) -> None:
        """
        Visit every file exactly once.

        The visitor may rewrite the file contents or rename it in place, and
        returns WalkAction.DELETE to remove it. Deletions are applied once the
        walk completes; exceptions raised by the visitor stop the walk.

        Raises:
            TreeWalkError: If a rename produced duplicate names in a directory.
        """
        doomed: List[Tuple[Optional[SolutionSubDirectory], SolutionFile]] = []
        for sub, sf in self.iter_files():
            if visitor(sub, sf) == WalkAction.DELETE:
                doomed.append((sub, sf))

        for sub, sf in doomed:
            siblings = sub.files if sub else self.root_files
            siblings[:] = [f for f in siblings if f is not sf]
            logger.debug(f"Removed {join_relative(sub, sf.name)} from solution tree")

        for files, label in [(self.root_files, "solution root")] + [
            (d.files, d.path) for d in self.directories.values()
        ]:
            names = [f.name for f in files]
            if len(names) != len(set(names)):
                raise TreeWalkError(f"duplicate file names in {label!r} after walk", path=label)

    # -------------------------------------------------------------------------
    # SERIALIZATION
    # -------------------------------------------------------------------------

    def write(self, target_path: str, json_indent: int = 2) -> int:
        """
        Write the tree and its manifest under target_path.

        Args:
            target_path: Output directory; must be absent or empty.
            json_indent: Indentation used if the manifest is JSON.

        Returns:
            int: Number of files written, manifest included.

        Raises:
            InvalidTarget: If target_path is a non-empty directory or a file.
        """
        if not is_empty_dir(target_path):
            raise InvalidTarget(f"target directory {target_path!r} must be empty", path=target_path)
        os.makedirs(target_path, exist_ok=True)

        count = 0
        for path in sorted(self.directories):
            os.makedirs(os.path.join(target_path, *path.split("/")), exist_ok=True)
        for sub, sf in self.iter_files():
            rel = join_relative(sub, sf.name)
            with open(os.path.join(target_path, *rel.split("/")), "wb") as f:
                f.write(sf.contents)
            count += 1

        with open(os.path.join(target_path, self.manifest.file_name), "wb") as f:
            f.write(self.manifest.encode(indent=json_indent))
        count += 1

        logger.info(f"Wrote {count} files of solution {self.manifest.name!r} to {target_path}")
        return count


# -----------------------------------------------------------------------------
# DESCRIPTION
# -----------------------------------------------------------------------------

def describe_tree(tree: SolutionTree) -> List[str]:
    """
    Render a textual summary of the manifest identity and tree annotations.

    Returns:
        List[str]: Lines of the summary.
    """
    m = tree.manifest
    lines = [
        f"Solution: {m.name}",
        f"Version: {m.solution_version or '-'}",
        f"Manifest: {m.file_name} ({m.manifest_format.value})",
        f"Dependencies: {', '.join(m.dependencies) if m.dependencies else '-'}",
        "Root files:",
    ]
    lines.extend(f"  {sf}" for sf in tree.root_files)
    for path in sorted(tree.directories):
        sub = tree.directories[path]
        lines.append(f"Directory {sub}")
        lines.extend(f"  {sf}" for sf in sub.files)
    return lines
