from __future__ import annotations

"""
Archive Codec.

Extracts zip archives into a target directory (with zip-slip defense and
optional leading-directory skipping) and packs solution directories into
zip archives rooted at the directory base name.
"""

import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple

from solutionkit.domain.constants import EXCLUDED_DIR_NAMES
from solutionkit.domain.errors import ArchiveError, PathTraversalRejected
from solutionkit.infra.fs import ARCHIVE_EXTENSION

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# UNPACK
# -----------------------------------------------------------------------------

def unpack_archive(archive_path: str, target_dir: str, skip_levels: int = 0) -> List[str]:
    """
    Extract every entry of a zip archive under target_dir.

    All entries are validated before anything is written, so a rejected
    archive leaves the target untouched. The first skip_levels components of
    each entry are dropped; those components must be directories.

    Args:
        archive_path: Zip file to read.
        target_dir: Extraction root (created if missing).
        skip_levels: Number of leading path components to drop.

    Returns:
        List[str]: Root-relative paths of the extracted files.

    Raises:
        PathTraversalRejected: If an entry would escape target_dir.
        ArchiveError: If the archive is unreadable or a file lies inside the
            skipped levels.
    """
    dest_root = Path(target_dir).resolve()
    try:
        with zipfile.ZipFile(archive_path, "r") as z:
            plan = _plan_extraction(z.infolist(), dest_root, skip_levels)
            dest_root.mkdir(parents=True, exist_ok=True)

            extracted: List[str] = []
            for info, rel_parts in plan:
                if not rel_parts:
                    continue
                target_path = dest_root.joinpath(*rel_parts)
                if info.is_dir():
                    target_path.mkdir(parents=True, exist_ok=True)
                    continue
                target_path.parent.mkdir(parents=True, exist_ok=True)
                with z.open(info, "r") as src, open(target_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)
                extracted.append("/".join(rel_parts))
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"cannot read archive {archive_path!r}: {e}", path=archive_path) from e

    logger.debug(f"Extracted {len(extracted)} files from {archive_path} into {dest_root}")
    return extracted


def _plan_extraction(
        infos: List[zipfile.ZipInfo],
        dest_root: Path,
        skip_levels: int,
) -> List[Tuple[zipfile.ZipInfo, Tuple[str, ...]]]:
    """Validate every entry and compute its target components."""
    plan: List[Tuple[zipfile.ZipInfo, Tuple[str, ...]]] = []
    skipped_prefix: Optional[Tuple[str, ...]] = None

    for info in infos:
        name = info.filename.replace("\\", "/")
        parts = tuple(p for p in PurePosixPath(name).parts if p not in ("", "."))

        if name.startswith("/") or ".." in parts or (parts and ":" in parts[0]):
            raise PathTraversalRejected(f"illegal archive entry path {info.filename!r}", path=info.filename)
        resolved = dest_root.joinpath(*parts).resolve() if parts else dest_root
        if resolved != dest_root and dest_root not in resolved.parents:
            raise PathTraversalRejected(f"archive entry {info.filename!r} escapes the target", path=info.filename)

        if len(parts) <= skip_levels:
            if not info.is_dir():
                raise ArchiveError(
                    f"file {info.filename!r} found inside the {skip_levels} skipped levels",
                    path=info.filename,
                )
            continue

        prefix = parts[:skip_levels]
        if skipped_prefix is None:
            skipped_prefix = prefix
        elif prefix != skipped_prefix:
            logger.warning(f"Archive entry {info.filename!r} does not share the skipped prefix {'/'.join(skipped_prefix)!r}")

        plan.append((info, parts[skip_levels:]))

    return plan


# -----------------------------------------------------------------------------
# PACK
# -----------------------------------------------------------------------------

def pack_directory(source_dir: str, archive_path: Optional[str] = None) -> str:
    """
    Pack a directory into a zip archive rooted at its base name.

    Args:
        source_dir: Directory to pack.
        archive_path: Target zip file. When None a temporary '<name>*.zip'
            is created; when an existing directory, '<name>.zip' is created
            inside it.

    Returns:
        str: Path of the archive written.
    """
    source = Path(source_dir).resolve()
    if not source.is_dir():
        raise ArchiveError(f"cannot pack {source_dir!r}: not a directory", path=source_dir)
    root_name = source.name

    if archive_path is None:
        fd, archive_path = tempfile.mkstemp(prefix=root_name, suffix=ARCHIVE_EXTENSION)
        os.close(fd)
    elif os.path.isdir(archive_path):
        archive_path = os.path.join(archive_path, root_name + ARCHIVE_EXTENSION)
    Path(archive_path).parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as z:
        z.writestr(root_name + "/", b"")
        for dirpath, dirnames, filenames in os.walk(source):
            dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIR_NAMES)
            rel_dir = Path(dirpath).relative_to(source)
            for d in dirnames:
                z.writestr((PurePosixPath(root_name) / rel_dir.as_posix() / d).as_posix() + "/", b"")
            for fn in sorted(filenames):
                full = Path(dirpath) / fn
                arcname = (PurePosixPath(root_name) / rel_dir.as_posix() / fn).as_posix()
                z.write(full, arcname)
                count += 1

    logger.info(f"Packed {count} files from {source} into {archive_path}")
    return archive_path
