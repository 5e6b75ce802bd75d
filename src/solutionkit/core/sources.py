from __future__ import annotations

"""
Solution Source Preparation.

Turns the source argument of an operation (a solution directory or a zip
archive of one) into a directory that the tree model can scan.
"""

import logging
import os
import tempfile
from typing import Optional, Tuple

from solutionkit.domain.errors import InvalidTarget
from solutionkit.infra.archive import unpack_archive
from solutionkit.infra.fs import is_archive_path, remove_tree

logger = logging.getLogger(__name__)


def prepare_source(source: str, skip_levels: int) -> Tuple[str, Optional[str]]:
    """
    Resolve an operation source to a solution directory.

    Archives are unpacked into a temporary directory which the caller must
    remove once the operation is over.

    Args:
        source: Solution directory or '.zip' archive.
        skip_levels: Leading archive levels to drop when unpacking.

    Returns:
        Tuple[str, Optional[str]]: Solution directory and the temporary
            directory to remove (None for directory sources).

    Raises:
        InvalidTarget: If the source does not exist.
    """
    if os.path.isdir(source):
        return source, None
    if not (os.path.isfile(source) and is_archive_path(source)):
        raise InvalidTarget(f"source {source!r} is neither a solution directory nor a zip archive", path=source)

    temp_dir = tempfile.mkdtemp(prefix="solutionkit-src-")
    try:
        unpack_archive(source, temp_dir, skip_levels=skip_levels)
    except BaseException:
        remove_tree(temp_dir)
        raise
    logger.debug(f"Unpacked source archive {source} into {temp_dir}")
    return temp_dir, temp_dir
