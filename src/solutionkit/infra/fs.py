from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides path normalization, user data directory resolution and the target
location checks shared by the isolation and fork engines.
"""

import os
import shutil
from typing import Optional

# -----------------------------------------------------------------------------
# GLOBAL CONSTANTS
# -----------------------------------------------------------------------------

APP_DIR_NAME = "SolutionKit"
UNIX_APP_DIR_NAME = ".solutionkit"
ARCHIVE_EXTENSION = ".zip"

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def get_user_data_dir() -> str:
    """
    Resolve the standard OS-specific directory for persistent application data.

    Automatically creates the hierarchy if it does not exist.
    Standards:
    - Windows: %LOCALAPPDATA%/SolutionKit
    - Linux/Mac: ~/.solutionkit

    Returns:
        str: Absolute path to the application data directory.
    """
    path: str = ""

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if base:
            path = os.path.join(base, APP_DIR_NAME)

    if not path:
        path = os.path.join(os.path.expanduser("~"), UNIX_APP_DIR_NAME)

    try:
        os.makedirs(path, exist_ok=True)
    except OSError:
        pass

    return os.path.abspath(path)


def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty.

    Args:
        path: Raw input path string.
        fallback: Default path to use if the input is empty.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip() or fallback
    return os.path.abspath(os.path.expandvars(os.path.expanduser(p)))


def is_archive_path(path: str) -> bool:
    """Check whether a path designates a zip archive by its extension."""
    return path.lower().endswith(ARCHIVE_EXTENSION)


def archive_base_name(path: str) -> str:
    """Return the archive file name without its '.zip' extension."""
    name = os.path.basename(path)
    if is_archive_path(name):
        return name[:-len(ARCHIVE_EXTENSION)]
    return name

# -----------------------------------------------------------------------------
# FILESYSTEM VALIDATION API
# -----------------------------------------------------------------------------

def is_empty_dir(path: str) -> bool:
    """
    Check whether a directory may be used as an output root.

    Returns:
        bool: True if the path does not exist or is an empty directory.
    """
    if not os.path.exists(path):
        return True
    if not os.path.isdir(path):
        return False
    with os.scandir(path) as it:
        return next(it, None) is None


def remove_tree(path: Optional[str]) -> None:
    """Remove a temporary directory, ignoring a missing one."""
    if path and os.path.isdir(path):
        shutil.rmtree(path, ignore_errors=True)
