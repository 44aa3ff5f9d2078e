"""Heuristic detection of source commits already present in the destination.

Commit hashes differ between the two repositories, so a commit is identified
by its comparison message plus its author date. Merge commits usually carry
generic messages, so they are compared by the tail of their sha instead.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from reposync.core import DestinationCommitRecord, SourceCommit

# Dates may be rounded differently on each side; anything closer is the same commit
MATCH_TOLERANCE = timedelta(milliseconds=1000)


def comparison_message(commit: SourceCommit) -> str:
    """Get the message used both for matching and for the replayed commit."""
    if commit.is_merge:
        return commit.short_id
    return commit.message


def find_matching_commit(
    commit: SourceCommit,
    existing: Iterable[DestinationCommitRecord],
    tolerance: timedelta = MATCH_TOLERANCE,
) -> DestinationCommitRecord | None:
    """Find the first destination commit that represents a source commit.

    Args:
        commit: Candidate commit from the source repository.
        existing: Commits already in the destination.
        tolerance: Maximum (exclusive) distance between the two dates.

    Returns:
        The first record with an equal message and a date closer than the
        tolerance, or None.
    """
    message = comparison_message(commit)
    for record in existing:
        if record.message != message:
            continue
        if abs(record.timestamp - commit.timestamp) < tolerance:
            return record
    return None


def is_already_applied(
    commit: SourceCommit,
    existing: Iterable[DestinationCommitRecord],
    tolerance: timedelta = MATCH_TOLERANCE,
) -> bool:
    """Check whether a source commit was already replayed."""
    return find_matching_commit(commit, existing, tolerance) is not None
