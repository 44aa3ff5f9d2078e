"""Decide whether two files at the same relative path have diverged."""

from __future__ import annotations

import logging
from pathlib import Path

from reposync.core import FileEntry

logger = logging.getLogger(__name__)


def entries_differ(source: FileEntry, destination: FileEntry) -> bool:
    """Check whether two existing file entries have different content.

    Size and modification time are compared first. Only when both match are
    the content digests computed, and the digest has the final word.

    Args:
        source: Entry from the source tree.
        destination: Entry at the same relative path in the destination tree.

    Returns:
        True if the destination needs to be overwritten.
    """
    if source.is_symlink != destination.is_symlink:
        return True

    if source.size != destination.size or source.mtime_ns != destination.mtime_ns:
        return True

    if source.digest != destination.digest:
        logger.debug("Digest mismatch despite equal metadata: %s", source.relative_path)
        return True
    return False


def files_differ(source: Path | str, destination: Path | str) -> bool:
    """Check whether two existing files have different content.

    Both paths must exist; missing entries are handled by the caller.
    """
    source = Path(source)
    destination = Path(destination)
    return entries_differ(
        FileEntry.from_path(source, source.parent),
        FileEntry.from_path(destination, destination.parent),
    )
