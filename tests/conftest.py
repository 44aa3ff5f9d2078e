"""Shared fixtures for reposync tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from git import Actor, Repo

from reposync.git_replay import format_git_date

DEV_ACTOR = Actor("Dev Person", "dev@example.com")
BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def commit_files(
    repo: Repo,
    message: str,
    when: datetime,
    files: dict[str, str] | None = None,
    removed: tuple[str, ...] = (),
):
    """Write files into a repo's working tree and commit them at a fixed date."""
    root = Path(repo.working_tree_dir)
    for rel_path, content in (files or {}).items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    for rel_path in removed:
        (root / rel_path).unlink()

    repo.git.add("-A")
    date = format_git_date(when)
    return repo.index.commit(
        message,
        author=DEV_ACTOR,
        committer=DEV_ACTOR,
        author_date=date,
        commit_date=date,
    )


def at(minutes: int) -> datetime:
    """A fixed test timestamp, offset by whole minutes."""
    return BASE_TIME + timedelta(minutes=minutes)


def commit_messages(path: Path) -> list[str]:
    """Commit messages of a repository, oldest first."""
    return [c.message.strip() for c in reversed(list(Repo(path).iter_commits()))]


@pytest.fixture
def dev_repo(tmp_path):
    """A source repository with three commits: init, add file, merge."""
    path = tmp_path / "dev"
    repo = Repo.init(path)
    commit_files(repo, "init", at(0), {"app.js": "console.log('v1');\n"})
    commit_files(
        repo,
        "add file",
        at(1),
        {"lib/util.js": "export const x = 1;\n", "node_modules/dep/index.js": "dep\n"},
    )
    commit_files(repo, "merge xyz", at(2), {"app.js": "console.log('v2');\n"})
    return repo


@pytest.fixture
def live_path(tmp_path):
    """Location of the destination repository (not created)."""
    return tmp_path / "live"


@pytest.fixture
def scratch_dir(tmp_path):
    """Parent directory for scratch workspaces."""
    path = tmp_path / "scratch"
    path.mkdir()
    return path
