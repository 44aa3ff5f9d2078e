"""reposync - Mirror a development repository's history into a live repository."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from reposync.core import (
    DestinationCommitRecord,
    FileEntry,
    ReplayAction,
    ReplayEvent,
    ReplayResult,
    SourceCommit,
)
from reposync.exceptions import (
    DestinationUnwritableError,
    RepoSyncError,
    SourceUnavailableError,
)
from reposync.exclusion import ExclusionPolicy
from reposync.git_replay import (
    HistoryReplayer,
    clone_repository,
    is_remote_location,
    resolve_location,
)
from reposync.matcher import comparison_message, is_already_applied
from reposync.tree_sync import synchronize_tree
from reposync.workspace import scratch_workspace

__version__ = "0.1.0"

__all__ = [
    # Core types
    "SourceCommit",
    "DestinationCommitRecord",
    "FileEntry",
    "ReplayAction",
    "ReplayEvent",
    "ReplayResult",
    "ExclusionPolicy",
    "HistoryReplayer",
    # Errors
    "RepoSyncError",
    "SourceUnavailableError",
    "DestinationUnwritableError",
    # Main functions
    "sync_repos",
    "pending_commits",
    "synchronize_tree",
    "comparison_message",
    "is_already_applied",
]


def _resolve_destination(destination: Path | str) -> Path:
    if is_remote_location(str(destination)):
        raise ValueError(f"Destination must be a local path: {destination}")
    return Path(destination).resolve()


def sync_repos(
    source: Path | str,
    destination: Path | str,
    policy: ExclusionPolicy | None = None,
    scratch_dir: Path | None = None,
    preserve_author: bool = False,
    on_progress: Callable[[ReplayEvent], None] | None = None,
) -> ReplayResult:
    """Replay the history of a source repository into a destination.

    The source is cloned into a scratch workspace which is removed
    afterwards, whether or not the replay succeeded. Commits already present
    in the destination are skipped, so re-running after a failure resumes
    where the previous run stopped.

    Args:
        source: Local path or URL of the development repository.
        destination: Local path of the live repository. Created if missing.
        policy: Exclusion policy. Defaults to ExclusionPolicy().
        scratch_dir: Parent directory for the scratch workspace. Defaults to
            the system temp directory.
        preserve_author: Keep the source author on replayed commits.
        on_progress: Optional callback called once per source commit.

    Returns:
        ReplayResult with the applied and skipped commits.

    Raises:
        SourceUnavailableError: If the source cannot be cloned or checked out.
        DestinationUnwritableError: If the destination cannot be updated.
        ValueError: If the destination is not a local path.
    """
    location = resolve_location(source)
    destination_path = _resolve_destination(destination)

    with scratch_workspace(scratch_dir) as scratch_path:
        clone_repository(location, scratch_path)
        replayer = HistoryReplayer(
            scratch_path=scratch_path,
            destination=destination_path,
            policy=policy,
            preserve_author=preserve_author,
            on_progress=on_progress,
        )
        return replayer.replay()


def pending_commits(
    source: Path | str,
    destination: Path | str,
    scratch_dir: Path | None = None,
) -> list[SourceCommit]:
    """List the source commits that sync_repos would apply, oldest first.

    The destination is not modified.
    """
    location = resolve_location(source)
    destination_path = _resolve_destination(destination)

    with scratch_workspace(scratch_dir) as scratch_path:
        clone_repository(location, scratch_path)
        replayer = HistoryReplayer(scratch_path=scratch_path, destination=destination_path)
        return replayer.pending()
