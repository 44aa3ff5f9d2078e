"""Reconcile a destination directory tree onto a source tree."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from reposync.core import FileEntry
from reposync.differ import entries_differ
from reposync.exclusion import ExclusionPolicy

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Relative paths touched by one synchronization."""

    copied: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.copied or self.updated or self.deleted)


def synchronize_tree(
    source_root: Path | str,
    destination_root: Path | str,
    policy: ExclusionPolicy | None = None,
) -> SyncStats:
    """Make the destination tree match the source tree.

    Entries rejected by the policy are never created, updated or deleted on
    either side. All copies and updates at a directory level happen before
    any deletion at that level. Symlinks are mirrored as links and never
    followed.

    Args:
        source_root: Root of the tree to copy from. Never modified.
        destination_root: Root of the tree to update. Created if absent.
        policy: Exclusion policy; defaults to ExclusionPolicy().

    Returns:
        SyncStats listing the copied, updated and deleted paths.

    Raises:
        OSError: On any filesystem failure. Nothing is retried.
    """
    source_root = Path(source_root)
    destination_root = Path(destination_root)
    policy = policy or ExclusionPolicy()

    logger.debug("Synchronizing files from %s to %s", source_root, destination_root)
    destination_root.mkdir(parents=True, exist_ok=True)

    stats = SyncStats()
    _synchronize_dir(source_root, destination_root, source_root, destination_root, policy, stats)
    return stats


def _list_entries(directory: Path, root: Path) -> dict[str, FileEntry]:
    return {child.name: FileEntry.from_path(child, root) for child in directory.iterdir()}


def _synchronize_dir(
    source_dir: Path,
    destination_dir: Path,
    source_root: Path,
    destination_root: Path,
    policy: ExclusionPolicy,
    stats: SyncStats,
) -> None:
    source_entries = _list_entries(source_dir, source_root)
    destination_entries = _list_entries(destination_dir, destination_root)

    for name in sorted(source_entries):
        entry = source_entries[name]
        if not policy.is_included(entry.relative_path):
            continue

        target = destination_dir / name
        existing = destination_entries.get(name)

        # A file replaced by a directory (or the reverse) is re-created
        if existing is not None and existing.is_dir != entry.is_dir:
            logger.debug("Replacing %s of a different kind", target)
            if not _remove_entry(existing, destination_root, policy):
                raise IsADirectoryError(
                    f"Cannot replace {target}: it contains excluded entries"
                )
            existing = None

        if entry.is_dir:
            if existing is None:
                logger.debug("Copying new dir: %s", entry.path)
                _copy_subtree(entry.path, target, source_root, policy)
                stats.copied.append(entry.relative_path)
            else:
                _synchronize_dir(
                    entry.path, target, source_root, destination_root, policy, stats
                )
        elif existing is None:
            logger.debug("Copying new file: %s", entry.path)
            _copy_file(entry.path, target)
            stats.copied.append(entry.relative_path)
        elif entries_differ(entry, existing):
            logger.debug("Replacing file: %s", entry.path)
            if entry.is_symlink or existing.is_symlink:
                target.unlink()
            _copy_file(entry.path, target)
            stats.updated.append(entry.relative_path)

    for name, existing in destination_entries.items():
        if name in source_entries or not policy.is_included(existing.relative_path):
            continue
        logger.debug("Deleting: %s", existing.path)
        if _remove_entry(existing, destination_root, policy):
            stats.deleted.append(existing.relative_path)
        else:
            logger.debug("Kept %s: it contains excluded entries", existing.path)


def _copy_file(source: Path, target: Path) -> None:
    # copy2 keeps the mtime so the next run can skip unchanged files cheaply
    shutil.copy2(source, target, follow_symlinks=False)


def _copy_subtree(source: Path, target: Path, source_root: Path, policy: ExclusionPolicy) -> None:
    def ignore(directory: str, names: list[str]) -> list[str]:
        rel_dir = Path(directory).relative_to(source_root)
        return [name for name in names if not policy.is_included(rel_dir / name)]

    shutil.copytree(source, target, symlinks=True, ignore=ignore)


def _remove_entry(entry: FileEntry, root: Path, policy: ExclusionPolicy) -> bool:
    """Delete an entry, keeping any excluded paths nested inside it.

    Returns:
        True if the entry is gone, False if a directory had to stay because
        excluded entries remain in it.
    """
    if not entry.is_dir:
        entry.path.unlink()
        return True

    kept = False
    for child in entry.path.iterdir():
        child_entry = FileEntry.from_path(child, root)
        if not policy.is_included(child_entry.relative_path):
            kept = True
        elif not _remove_entry(child_entry, root, policy):
            kept = True

    if kept:
        return False
    entry.path.rmdir()
    return True
