"""Replay the history of a source repository into a destination repository."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable

from git import Actor, Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from reposync.core import (
    DestinationCommitRecord,
    ReplayAction,
    ReplayEvent,
    ReplayResult,
    SourceCommit,
)
from reposync.exceptions import DestinationUnwritableError, SourceUnavailableError
from reposync.exclusion import ExclusionPolicy
from reposync.matcher import comparison_message, is_already_applied
from reposync.tree_sync import synchronize_tree

logger = logging.getLogger(__name__)

# scp-like remote syntax, e.g. git@github.com:owner/repo.git
SCP_LOCATION_PATTERN = re.compile(r"^[\w.-]+@[\w.-]+:")


def is_remote_location(location: str) -> bool:
    """Check whether a location is a URL rather than a local path."""
    return "://" in location or bool(SCP_LOCATION_PATTERN.match(location))


def resolve_location(location: Path | str) -> str:
    """Resolve a repository location.

    URLs are returned unchanged; local paths are made absolute.
    """
    location = str(location)
    if is_remote_location(location):
        return location
    return str(Path(location).resolve())


def format_git_date(timestamp: datetime) -> str:
    """Format a datetime in git's internal "<epoch> <+hhmm>" date format."""
    offset = timestamp.utcoffset() or timedelta(0)
    seconds = int(offset.total_seconds())
    sign = "-" if seconds < 0 else "+"
    seconds = abs(seconds)
    return f"{int(timestamp.timestamp())} {sign}{seconds // 3600:02d}{(seconds % 3600) // 60:02d}"


def is_repository(path: Path) -> bool:
    """Check whether a directory is itself the root of a git repository."""
    try:
        Repo(path)
        return True
    except (InvalidGitRepositoryError, NoSuchPathError):
        return False


def clone_repository(location: str, path: Path) -> Repo:
    """Clone a repository into path.

    Raises:
        SourceUnavailableError: If the clone fails.
    """
    logger.info("Cloning %s into %s", location, path)
    try:
        return Repo.clone_from(location, str(path))
    except GitCommandError as e:
        raise SourceUnavailableError(f"Could not clone {location}: {e}", location=location) from e


def read_commit_log(repo: Repo) -> list[SourceCommit]:
    """Read the commit history reachable from HEAD, newest first.

    Args:
        repo: The repository to read.

    Returns:
        List of SourceCommit objects, or an empty list if the repository has
        no commits.
    """
    commits = []
    try:
        for commit in repo.iter_commits():
            commits.append(
                SourceCommit(
                    sha=commit.hexsha,
                    message=commit.message.strip(),
                    timestamp=commit.authored_datetime,
                    author=commit.author.name or "",
                    author_email=commit.author.email or "",
                )
            )
    except ValueError:
        # Empty repository has no commits
        return []
    return commits


def read_destination_commits(path: Path) -> list[DestinationCommitRecord]:
    """Read the commits already present in the destination.

    A missing directory, a directory that is not a repository, or a
    repository without commits all yield an empty list.
    """
    if not path.exists() or not is_repository(path):
        return []

    records = []
    try:
        for commit in Repo(path).iter_commits():
            records.append(
                DestinationCommitRecord(
                    message=commit.message.strip(),
                    timestamp=commit.authored_datetime,
                )
            )
    except ValueError:
        logger.info("Target repository is empty, proceeding with initial sync")
        return []
    except GitCommandError as e:
        logger.warning("Failed to read commits from target repository: %s", e)
        return []
    return records


def commit_all(
    repo: Repo,
    message: str,
    timestamp: datetime,
    author: Actor | None = None,
):
    """Stage every working tree change and commit it at a fixed date.

    The date is handed to this one commit as both author and committer
    date; no environment variables are modified.

    Args:
        repo: Destination repository.
        message: Commit message.
        timestamp: Date for the new commit.
        author: Optional author; defaults to the repository's configured user.

    Returns:
        The new git Commit object.
    """
    repo.git.add("-A")
    date = format_git_date(timestamp)
    return repo.index.commit(
        message,
        author=author,
        author_date=date,
        commit_date=date,
    )


class HistoryReplayer:
    """Replays source commits, oldest first, into a destination repository."""

    def __init__(
        self,
        scratch_path: Path,
        destination: Path,
        policy: ExclusionPolicy | None = None,
        preserve_author: bool = False,
        on_progress: Callable[[ReplayEvent], None] | None = None,
    ):
        """Initialize the replayer.

        Args:
            scratch_path: Clone of the source repository. Its checkout is
                moved from commit to commit during replay.
            destination: Working tree of the destination repository. Created
                and initialized as a repository when needed.
            policy: Exclusion policy for tree synchronization.
            preserve_author: Use the source commit's author for replayed
                commits instead of the destination's configured user.
            on_progress: Optional callback called once per source commit.
        """
        self.scratch_path = Path(scratch_path)
        self.destination = Path(destination)
        self.policy = policy or ExclusionPolicy()
        self.preserve_author = preserve_author
        self.on_progress = on_progress
        self.source_repo: Repo | None = None
        self.repo: Repo | None = None
        self._existing: list[DestinationCommitRecord] = []

    def _load(self) -> list[SourceCommit]:
        """Read both histories. Returns source commits oldest first."""
        try:
            self.source_repo = Repo(self.scratch_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise SourceUnavailableError(
                f"Scratch workspace is not a repository: {self.scratch_path}"
            ) from e

        commits = read_commit_log(self.source_repo)
        commits.reverse()
        self._existing = read_destination_commits(self.destination)
        logger.debug(
            "Loaded %d source commits and %d destination commits",
            len(commits),
            len(self._existing),
        )
        return commits

    def pending(self) -> list[SourceCommit]:
        """List the source commits a replay would apply, oldest first.

        Nothing is checked out or written.
        """
        commits = self._load()
        return [c for c in commits if not is_already_applied(c, self._existing)]

    def replay(self) -> ReplayResult:
        """Replay every source commit missing from the destination.

        Returns:
            ReplayResult listing applied and skipped commits.

        Raises:
            SourceUnavailableError: If a source commit cannot be checked out.
            DestinationUnwritableError: If the destination cannot be written
                or committed to. Earlier commits stay applied.
        """
        commits = self._load()
        restore_ref = self._current_ref() if commits else None
        result = ReplayResult(destination=self.destination)

        try:
            for commit in commits:
                message = comparison_message(commit)
                if commit.is_merge:
                    logger.info("Processing merge commit: %s", message)

                if is_already_applied(commit, self._existing):
                    logger.info("Skipping existing commit with message: %s", commit.subject)
                    result.skipped.append(commit)
                    self._notify(commit, ReplayAction.SKIPPED, message)
                    continue

                self._apply_commit(commit, message)
                result.applied.append(commit)
                logger.info("Applied commit: %s", message.split("\n", 1)[0])
                self._notify(commit, ReplayAction.APPLIED, message)
        finally:
            self._restore(restore_ref)

        logger.info(
            "Live repository updated: %d applied, %d skipped",
            result.applied_count,
            result.skipped_count,
        )
        return result

    def _notify(self, commit: SourceCommit, action: ReplayAction, message: str) -> None:
        if self.on_progress:
            self.on_progress(ReplayEvent(commit=commit, action=action, comparison_message=message))

    def _apply_commit(self, commit: SourceCommit, message: str) -> None:
        """Check out one source commit, mirror its tree and commit it."""
        try:
            self.source_repo.git.checkout(commit.sha)
        except GitCommandError as e:
            raise SourceUnavailableError(f"Could not check out {commit.sha}: {e}") from e

        try:
            stats = synchronize_tree(self.scratch_path, self.destination, self.policy)
        except OSError as e:
            raise DestinationUnwritableError(
                f"Could not synchronize files for {commit.sha}: {e}", sha=commit.sha
            ) from e
        logger.debug(
            "Synchronized %s: %d copied, %d updated, %d deleted",
            commit.sha[:8],
            len(stats.copied),
            len(stats.updated),
            len(stats.deleted),
        )

        author = Actor(commit.author, commit.author_email) if self.preserve_author else None
        try:
            commit_all(self._ensure_repo(), message, commit.timestamp, author=author)
        except (GitCommandError, OSError) as e:
            raise DestinationUnwritableError(
                f"Could not commit {commit.sha}: {e}", sha=commit.sha
            ) from e

    def _ensure_repo(self) -> Repo:
        """Open the destination repository, initializing it on first use."""
        if self.repo is None:
            try:
                self.repo = Repo(self.destination)
            except (InvalidGitRepositoryError, NoSuchPathError):
                logger.info("Initializing repository at %s", self.destination)
                self.repo = Repo.init(self.destination, mkdir=True)
        return self.repo

    def _current_ref(self) -> str | None:
        """Name of the branch (or sha) the scratch clone started on."""
        try:
            if self.source_repo.head.is_detached:
                return self.source_repo.head.commit.hexsha
            return self.source_repo.active_branch.name
        except ValueError:
            # Empty source repository
            return None

    def _restore(self, ref: str | None) -> None:
        """Return the scratch checkout to the latest source commit."""
        if ref is None:
            return
        try:
            self.source_repo.git.checkout(ref)
        except GitCommandError as e:
            logger.warning("Could not restore scratch workspace to %s: %s", ref, e)
