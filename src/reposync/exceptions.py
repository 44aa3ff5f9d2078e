"""Exceptions raised by reposync."""

from __future__ import annotations


class RepoSyncError(Exception):
    """Base class for fatal reposync errors."""


class SourceUnavailableError(RepoSyncError):
    """The source repository could not be cloned or checked out."""

    def __init__(self, message: str, location: str | None = None):
        super().__init__(message)
        self.location = location


class DestinationUnwritableError(RepoSyncError):
    """Writing the destination tree or committing to it failed.

    Commits applied before the failure remain in the destination.
    """

    def __init__(self, message: str, sha: str | None = None):
        super().__init__(message)
        self.sha = sha
