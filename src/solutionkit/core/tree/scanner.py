from __future__ import annotations

"""
Solution Directory Scanner.

Walks a solution root and loads every subdirectory and file into tree nodes.
The walk is deterministic (lexical order) and never leaves the root.
"""

import logging
import os
from typing import Dict, List, Optional, Tuple

from solutionkit.domain.constants import EXCLUDED_DIR_NAMES, HIDDEN_ROOT_FILES
from solutionkit.domain.errors import TreeWalkError
from solutionkit.domain.tree_models import FileEncoding, FileKind, SolutionFile, SolutionSubDirectory

logger = logging.getLogger(__name__)


# ==============================================================================
# PUBLIC API
# ==============================================================================

def scan_solution_directory(
        root_path: str,
        manifest_file: Optional[str] = None,
) -> Tuple[List[SolutionFile], Dict[str, SolutionSubDirectory]]:
    """
    Load the files and subdirectories of a solution root.

    Args:
        root_path: Absolute path to the solution root.
        manifest_file: Root file name of the manifest, excluded from the
            result since the tree carries the parsed manifest instead.

    Returns:
        Tuple[List[SolutionFile], Dict[str, SolutionSubDirectory]]:
            Root files and the subdirectories keyed by relative path.

    Raises:
        TreeWalkError: If a walked path is not located under the root.
        OSError: If a file cannot be read.
    """
    root_abs = os.path.abspath(root_path)
    root_files: List[SolutionFile] = []
    directories: Dict[str, SolutionSubDirectory] = {}

    for current, dirs, files in os.walk(root_abs):
        dirs[:] = sorted(d for d in dirs if d not in EXCLUDED_DIR_NAMES)
        files.sort()

        rel_dir = os.path.relpath(current, root_abs).replace(os.sep, "/")
        if rel_dir == ".." or rel_dir.startswith("../"):
            raise TreeWalkError(f"walked path {current!r} escapes the solution root", path=current)

        if rel_dir == ".":
            for name in files:
                if name == manifest_file:
                    continue
                sf = _load_file(os.path.join(current, name), name)
                if name in HIDDEN_ROOT_FILES:
                    sf.kind = FileKind.HIDDEN
                root_files.append(sf)
            continue

        sub = SolutionSubDirectory(path=rel_dir)
        sub.files = [_load_file(os.path.join(current, name), name) for name in files]
        directories[rel_dir] = sub

    logger.debug(
        f"Scanned {root_abs}: {len(root_files)} root files, {len(directories)} directories, "
        f"{sum(len(d.files) for d in directories.values())} nested files"
    )
    return root_files, directories


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _load_file(full_path: str, name: str) -> SolutionFile:
    with open(full_path, "rb") as f:
        contents = f.read()
    return SolutionFile(name=name, contents=contents, encoding=FileEncoding.from_file_name(name))
