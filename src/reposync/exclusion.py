"""Decide which paths take part in synchronization."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Iterable

VCS_DIR = ".git"
IGNORE_FILE = ".gitignore"

# Dependency caches and build output that never belong in the live repository
DEFAULT_EXCLUDED_DIRS = ("node_modules", ".next")


@dataclass(frozen=True)
class ExclusionPolicy:
    """Path filter applied identically on the copy and delete side."""

    vcs_dir: str = VCS_DIR
    ignore_file: str = IGNORE_FILE
    excluded_dirs: frozenset[str] = field(default_factory=lambda: frozenset(DEFAULT_EXCLUDED_DIRS))

    @classmethod
    def with_extra_dirs(cls, extra: Iterable[str] | None = None) -> ExclusionPolicy:
        """Create the default policy with additional excluded directory names."""
        names = set(DEFAULT_EXCLUDED_DIRS)
        for name in extra or ():
            name = name.strip().strip("/")
            if name:
                names.add(name)
        return cls(excluded_dirs=frozenset(names))

    def is_included(self, relative_path: str | PurePath) -> bool:
        """Check whether a path relative to the tree root is synchronized.

        Args:
            relative_path: Path relative to the tree root, in either OS or
                POSIX form.

        Returns:
            False for VCS metadata, the root ignore file, and anything inside
            an excluded directory; True otherwise.
        """
        parts = PurePath(relative_path).parts
        if not parts:
            return True
        if parts[0] == self.vcs_dir:
            return False
        if "/".join(parts) == self.ignore_file:
            return False
        return not any(part in self.excluded_dirs for part in parts)
