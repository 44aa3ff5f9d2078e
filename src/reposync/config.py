"""Per-destination configuration stored in the destination's git config."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

CONFIG_SECTION = "reposync"


@dataclass
class ProjectConfig:
    """Configuration for one destination repository."""

    exclude: list[str] = field(default_factory=list)
    preserve_author: bool | None = None


def _parse_list(value: object) -> list[str]:
    return [item.strip() for item in str(value).split(",") if item.strip()]


def _parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def load_config(destination: Path) -> ProjectConfig:
    """Load configuration from the destination repository's git config.

    Args:
        destination: The destination working tree.

    Returns:
        ProjectConfig with saved settings, or defaults if there is no
        repository or no reposync section.
    """
    from git import Repo
    from git.exc import InvalidGitRepositoryError, NoSuchPathError

    if not destination.exists():
        return ProjectConfig()

    try:
        repo = Repo(destination)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return ProjectConfig()

    reader = repo.config_reader()
    config = ProjectConfig()
    if reader.has_option(CONFIG_SECTION, "exclude"):
        config.exclude = _parse_list(reader.get_value(CONFIG_SECTION, "exclude"))
    if reader.has_option(CONFIG_SECTION, "preserveAuthor"):
        config.preserve_author = _parse_bool(reader.get_value(CONFIG_SECTION, "preserveAuthor"))
    return config


def save_config(destination: Path, config: ProjectConfig) -> None:
    """Save configuration to the destination repository's git config.

    Does nothing if the destination is not a repository yet.
    """
    from git import Repo
    from git.exc import InvalidGitRepositoryError, NoSuchPathError

    if not destination.exists():
        return

    try:
        repo = Repo(destination)
    except (InvalidGitRepositoryError, NoSuchPathError):
        # Config is saved once the repository exists
        return

    with repo.config_writer() as writer:
        if config.exclude:
            writer.set_value(CONFIG_SECTION, "exclude", ",".join(config.exclude))
        if config.preserve_author is not None:
            writer.set_value(
                CONFIG_SECTION, "preserveAuthor", "true" if config.preserve_author else "false"
            )
