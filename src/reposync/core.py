"""Core dataclasses for reposync."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

# Number of trailing sha characters used to identify merge commits
SHORT_ID_LENGTH = 5

HASH_CHUNK_SIZE = 1024 * 1024


class ReplayAction(str, Enum):
    """What the replay engine did with a source commit."""

    APPLIED = "applied"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SourceCommit:
    """A commit from the source repository.

    The timestamp is the author date as a timezone-aware datetime.
    """

    sha: str
    message: str
    timestamp: datetime
    author: str = ""
    author_email: str = ""

    @property
    def is_merge(self) -> bool:
        """Whether the subject line marks this as a merge commit."""
        return "merge" in self.subject.lower()

    @property
    def short_id(self) -> str:
        """Last characters of the sha, used in place of merge messages."""
        return self.sha[-SHORT_ID_LENGTH:]

    @property
    def subject(self) -> str:
        """First line of the message for display."""
        return self.message.split("\n", 1)[0].strip()


@dataclass(frozen=True)
class DestinationCommitRecord:
    """A commit already present in the destination repository."""

    message: str
    timestamp: datetime


@dataclass
class FileEntry:
    """A directory entry seen while synchronizing a tree.

    The content digest is computed on first access only.
    """

    relative_path: str
    path: Path
    is_dir: bool
    is_symlink: bool = False
    size: int = 0
    mtime_ns: int = 0

    _digest: Optional[str] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_path(cls, path: Path, root: Path) -> FileEntry:
        """Build an entry from a path without following symlinks."""
        st = path.lstat()
        is_symlink = path.is_symlink()
        return cls(
            relative_path=path.relative_to(root).as_posix(),
            path=path,
            is_dir=path.is_dir() and not is_symlink,
            is_symlink=is_symlink,
            size=st.st_size,
            mtime_ns=st.st_mtime_ns,
        )

    @property
    def digest(self) -> str:
        """SHA-256 of the file bytes (or of the link target for symlinks)."""
        if self._digest is None:
            if self.is_symlink:
                target = os.readlink(self.path)
                self._digest = hashlib.sha256(target.encode("utf-8")).hexdigest()
            else:
                self._digest = hash_file(self.path)
        return self._digest


def hash_file(path: Path) -> str:
    """Compute the SHA-256 hex digest of a file, reading it in chunks."""
    sha = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            sha.update(chunk)
    return sha.hexdigest()


@dataclass
class ReplayEvent:
    """Progress notification emitted once per source commit."""

    commit: SourceCommit
    action: ReplayAction
    comparison_message: str


@dataclass
class ReplayResult:
    """Outcome of a replay run."""

    destination: Path
    applied: list[SourceCommit] = field(default_factory=list)
    skipped: list[SourceCommit] = field(default_factory=list)

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)
