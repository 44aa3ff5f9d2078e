"""CLI for reposync."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from reposync.core import ReplayAction, ReplayEvent
from reposync.exclusion import ExclusionPolicy


def resolve_options(
    target: Path,
    exclude: tuple[str, ...] = (),
    scratch_dir: Path | None = None,
    preserve_author: bool | None = None,
) -> tuple[ExclusionPolicy, Path | None, bool]:
    """Merge command line options with destination config and global settings.

    Excluded directories are combined from all sources. For the other
    options the command line wins over the destination config, which wins
    over the global settings.

    Returns:
        Tuple of (policy, scratch_dir, preserve_author).
    """
    from reposync.config import load_config
    from reposync.settings import load_settings

    settings = load_settings()
    project = load_config(target)

    extra = [*settings.exclude, *project.exclude, *exclude]
    policy = ExclusionPolicy.with_extra_dirs(extra)

    if scratch_dir is None:
        scratch_dir = settings.scratch_dir

    if preserve_author is None:
        if project.preserve_author is not None:
            preserve_author = project.preserve_author
        else:
            preserve_author = settings.preserve_author

    return policy, scratch_dir, preserve_author


def _enable_verbose(ctx: click.Context, param: click.Parameter, value: bool) -> bool:
    if value:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    return value


# Accepted on the group and on each replay command
verbose_option = click.option(
    "-v",
    "--verbose",
    is_flag=True,
    expose_value=False,
    callback=_enable_verbose,
    help="Display extra information while running.",
)


def _print_event(event: ReplayEvent) -> None:
    short_sha = event.commit.sha[:8]
    if event.action == ReplayAction.SKIPPED:
        click.echo(f"  skipped  {short_sha}  {event.commit.subject}")
    else:
        subject = event.comparison_message.split("\n", 1)[0]
        click.echo(f"  applied  {short_sha}  {subject}")


@click.group()
@click.version_option()
@verbose_option
def main() -> None:
    """Sync two repositories.

    Replays the commit history of a development repository into a live
    repository, leaving out VCS internals and build directories. Commits
    already present in the live repository are skipped, so running the
    same command again only applies new commits.

    Examples:

        reposync push ../app-dev ../app-live

        reposync push https://example.com/app.git ./live --exclude dist

        reposync pending ../app-dev ../app-live
    """


@main.command()
@click.argument("source")
@click.argument("target", type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "-e",
    "--exclude",
    multiple=True,
    help="Additional directory name to leave out. May be repeated.",
)
@click.option(
    "--scratch-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Parent directory for the temporary clone. Defaults to the system temp dir.",
)
@click.option(
    "--preserve-author/--no-preserve-author",
    default=None,
    help="Keep the original author on replayed commits.",
)
@verbose_option
def push(
    source: str,
    target: Path,
    exclude: tuple[str, ...],
    scratch_dir: Path | None,
    preserve_author: bool | None,
) -> None:
    """Push the history of SOURCE into the repository at TARGET.

    SOURCE may be a local path or a URL. TARGET is created and initialized
    as a git repository if needed.
    """
    from reposync import sync_repos
    from reposync.exceptions import RepoSyncError

    policy, scratch_dir, preserve_author = resolve_options(
        target, exclude, scratch_dir, preserve_author
    )

    click.echo(f"Pushing repo {source} to {target}")
    try:
        result = sync_repos(
            source,
            target,
            policy=policy,
            scratch_dir=scratch_dir,
            preserve_author=preserve_author,
            on_progress=_print_event,
        )
    except (RepoSyncError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Live repository updated at: {result.destination}")
    click.echo(f"  Applied: {result.applied_count}")
    click.echo(f"  Skipped: {result.skipped_count}")


@main.command()
@click.argument("source")
@click.argument("target", type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--scratch-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Parent directory for the temporary clone.",
)
@verbose_option
def pending(source: str, target: Path, scratch_dir: Path | None) -> None:
    """List commits from SOURCE that are not yet in TARGET."""
    from reposync import pending_commits
    from reposync.exceptions import RepoSyncError

    _, scratch_dir, _ = resolve_options(target, scratch_dir=scratch_dir)

    try:
        commits = pending_commits(source, target, scratch_dir=scratch_dir)
    except (RepoSyncError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if not commits:
        click.echo("Target is up to date.")
        return

    click.echo(f"Found {len(commits)} pending commits:\n")
    for commit in commits:
        date = commit.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        click.echo(f"  {commit.sha[:8]}  {date}  {commit.subject}")


@main.command("config")
@click.argument("target", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "-e",
    "--exclude",
    multiple=True,
    help="Directory name to always leave out for this target. May be repeated.",
)
@click.option(
    "--preserve-author/--no-preserve-author",
    default=None,
    help="Keep the original author on replayed commits for this target.",
)
def config_cmd(target: Path, exclude: tuple[str, ...], preserve_author: bool | None) -> None:
    """Show or change the reposync settings stored in TARGET's git config."""
    from reposync.config import load_config, save_config
    from reposync.git_replay import is_repository

    if not is_repository(target):
        raise click.ClickException(f"Not a git repository: {target}")

    config = load_config(target)
    if exclude or preserve_author is not None:
        if exclude:
            config.exclude = list(dict.fromkeys([*config.exclude, *exclude]))
        if preserve_author is not None:
            config.preserve_author = preserve_author
        save_config(target, config)
        click.echo(f"Saved settings for {target}")

    click.echo(f"  exclude: {', '.join(config.exclude) or '(none)'}")
    preserve = "unset" if config.preserve_author is None else str(config.preserve_author).lower()
    click.echo(f"  preserve-author: {preserve}")


if __name__ == "__main__":
    main()
