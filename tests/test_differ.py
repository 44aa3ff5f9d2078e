"""Tests for reposync.differ module."""

import os

from reposync.core import FileEntry
from reposync.differ import entries_differ, files_differ


def write(path, content, mtime_ns=None):
    path.write_bytes(content)
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


MTIME = 1_700_000_000_000_000_000


class TestFilesDiffer:
    """Tests for files_differ function."""

    def test_identical_files(self, tmp_path):
        """Should report no difference for same content and metadata."""
        a = write(tmp_path / "a.txt", b"hello", MTIME)
        b = write(tmp_path / "b.txt", b"hello", MTIME)
        assert files_differ(a, b) is False

    def test_different_size(self, tmp_path):
        """Should report a difference when sizes differ."""
        a = write(tmp_path / "a.txt", b"hello", MTIME)
        b = write(tmp_path / "b.txt", b"hello world", MTIME)
        assert files_differ(a, b) is True

    def test_different_mtime(self, tmp_path):
        """Should report a difference when only the mtime differs."""
        a = write(tmp_path / "a.txt", b"hello", MTIME)
        b = write(tmp_path / "b.txt", b"hello", MTIME + 5_000_000_000)
        assert files_differ(a, b) is True

    def test_same_metadata_different_content(self, tmp_path):
        """Should trust the digest when metadata is equal."""
        a = write(tmp_path / "a.txt", b"hello", MTIME)
        b = write(tmp_path / "b.txt", b"jello", MTIME)
        assert files_differ(a, b) is True

    def test_accepts_strings(self, tmp_path):
        """Should accept string paths."""
        a = write(tmp_path / "a.txt", b"x", MTIME)
        b = write(tmp_path / "b.txt", b"x", MTIME)
        assert files_differ(str(a), str(b)) is False


class TestEntriesDiffer:
    """Tests for entries_differ function."""

    def test_metadata_mismatch_skips_digest(self, tmp_path):
        """Should not read content when size differs."""
        write(tmp_path / "a.txt", b"short", MTIME)
        write(tmp_path / "b.txt", b"much longer", MTIME)
        a = FileEntry.from_path(tmp_path / "a.txt", tmp_path)
        b = FileEntry.from_path(tmp_path / "b.txt", tmp_path)

        assert entries_differ(a, b) is True
        assert a._digest is None
        assert b._digest is None

    def test_metadata_match_computes_digest(self, tmp_path):
        """Should compute digests when metadata is equal."""
        write(tmp_path / "a.txt", b"same", MTIME)
        write(tmp_path / "b.txt", b"same", MTIME)
        a = FileEntry.from_path(tmp_path / "a.txt", tmp_path)
        b = FileEntry.from_path(tmp_path / "b.txt", tmp_path)

        assert entries_differ(a, b) is False
        assert a._digest is not None
        assert a._digest == b._digest

    def test_symlink_versus_file(self, tmp_path):
        """Should report a difference between a link and a regular file."""
        write(tmp_path / "target.txt", b"data")
        os.symlink("target.txt", tmp_path / "link")
        write(tmp_path / "plain", b"data")
        link = FileEntry.from_path(tmp_path / "link", tmp_path)
        plain = FileEntry.from_path(tmp_path / "plain", tmp_path)

        assert entries_differ(link, plain) is True
