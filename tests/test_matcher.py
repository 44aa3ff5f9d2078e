"""Tests for reposync.matcher module."""

from datetime import datetime, timedelta, timezone

import pytest

from reposync.core import DestinationCommitRecord, SourceCommit
from reposync.matcher import (
    MATCH_TOLERANCE,
    comparison_message,
    find_matching_commit,
    is_already_applied,
)

WHEN = datetime(2024, 5, 1, 9, 30, 0, tzinfo=timezone.utc)


def source(message, sha="a" * 35 + "12345", when=WHEN):
    return SourceCommit(sha=sha, message=message, timestamp=when)


class TestComparisonMessage:
    """Tests for comparison_message function."""

    def test_regular_commit_keeps_message(self):
        """Should use the original message unmodified."""
        assert comparison_message(source("add file\n\nwith body")) == "add file\n\nwith body"

    def test_merge_commit_uses_sha_tail(self):
        """Should use the last 5 characters of the sha for merges."""
        commit = source("Merge branch 'feature'", sha="0" * 35 + "abcde")
        assert comparison_message(commit) == "abcde"

    def test_merge_detection_is_case_insensitive(self):
        """Should detect merge commits regardless of case."""
        assert source("MERGE pull request #4").is_merge
        assert source("merge xyz").is_merge
        assert not source("fix typo").is_merge

    def test_merge_in_body_is_not_a_merge(self):
        """Should only look at the subject line when detecting merges."""
        commit = source("Fix login redirect\n\nAvoids merge conflicts in settings.")
        assert not commit.is_merge
        assert comparison_message(commit) == commit.message
        assert not source("Squash feature\n\nSee merge request !42").is_merge

    def test_identical_merge_messages_disambiguated(self):
        """Should give distinct messages to merges with the same text."""
        first = source("Merge branch 'main'", sha="1" * 35 + "aaaaa")
        second = source("Merge branch 'main'", sha="1" * 35 + "bbbbb")
        assert comparison_message(first) != comparison_message(second)


class TestFindMatchingCommit:
    """Tests for find_matching_commit and is_already_applied."""

    def test_exact_match(self):
        """Should match equal message and timestamp."""
        records = [DestinationCommitRecord(message="init", timestamp=WHEN)]
        assert is_already_applied(source("init"), records)

    @pytest.mark.parametrize("offset_ms", [999, -999, 0, 500])
    def test_within_tolerance(self, offset_ms):
        """Should match timestamps less than a second apart."""
        records = [
            DestinationCommitRecord(message="init", timestamp=WHEN + timedelta(milliseconds=offset_ms))
        ]
        assert is_already_applied(source("init"), records)

    @pytest.mark.parametrize("offset_ms", [1001, -1001, 60_000])
    def test_outside_tolerance(self, offset_ms):
        """Should not match timestamps a second or more apart."""
        records = [
            DestinationCommitRecord(message="init", timestamp=WHEN + timedelta(milliseconds=offset_ms))
        ]
        assert not is_already_applied(source("init"), records)

    def test_message_must_match(self):
        """Should not match on timestamp alone."""
        records = [DestinationCommitRecord(message="fix", timestamp=WHEN)]
        assert not is_already_applied(source("init"), records)

    def test_merge_matched_by_sha_tail(self):
        """Should compare merge commits by their derived message."""
        commit = source("Merge branch 'x'", sha="f" * 35 + "9a8b7")
        records = [
            DestinationCommitRecord(message="Merge branch 'x'", timestamp=WHEN),
            DestinationCommitRecord(message="9a8b7", timestamp=WHEN),
        ]
        assert find_matching_commit(commit, records) is records[1]

    def test_first_match_wins(self):
        """Should return the first of several matching records."""
        records = [
            DestinationCommitRecord(message="fix", timestamp=WHEN + timedelta(milliseconds=300)),
            DestinationCommitRecord(message="fix", timestamp=WHEN),
        ]
        assert find_matching_commit(source("fix"), records) is records[0]

    def test_no_records(self):
        """Should not match against an empty history."""
        assert find_matching_commit(source("init"), []) is None

    def test_timezones_compared_as_instants(self):
        """Should compare the same instant in different offsets as equal."""
        other_zone = WHEN.astimezone(timezone(timedelta(hours=2)))
        records = [DestinationCommitRecord(message="init", timestamp=other_zone)]
        assert is_already_applied(source("init"), records)

    def test_custom_tolerance(self):
        """Should accept a custom tolerance."""
        records = [DestinationCommitRecord(message="init", timestamp=WHEN + timedelta(seconds=5))]
        assert not is_already_applied(source("init"), records)
        assert is_already_applied(source("init"), records, tolerance=timedelta(seconds=10))

    def test_default_tolerance(self):
        """Should default to one second."""
        assert MATCH_TOLERANCE == timedelta(milliseconds=1000)
