"""Command line interface for git-sub."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import click
from git import Repo
from pydantic import BaseModel
from rich.console import Console

from git_sub.cli import render
from git_sub.core import backend
from git_sub.core.config import Settings, load_settings
from git_sub.core.diff_filter import DiffFilter
from git_sub.core.errors import GitSubError
from git_sub.core.ls_files import list_files
from git_sub.core.status import aggregate_status
from git_sub.core.walker import list_commits
from git_sub.models.options import (
    LogDetail,
    LogOptions,
    LsFilesOptions,
    ShowOption,
    StatusOptions,
)


class CliContext(BaseModel):
    """State shared by the subcommands of one invocation."""

    repo: Repo
    root_dir: Path
    settings: Settings
    console: Console
    err_console: Console

    model_config = {"arbitrary_types_allowed": True}

    def fail(self, error: Exception) -> click.Abort:
        render.emit(self.err_console, (f"Error: {error}", "red"))
        return click.Abort()


@click.group()
@click.option(
    "--cwd",
    "-C",
    "path",
    type=click.Path(exists=True, file_okay=False),
    default=".",
    help="The working path of the repository",
)
@click.option(
    "--force-color", "-c", is_flag=True, help="Force color even when piping output"
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr")
@click.version_option(package_name="git-sub")
@click.pass_context
def main(ctx: click.Context, path: str, force_color: bool, verbose: bool):
    """Collect information of submodules in a convenient way."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    err_console = Console(stderr=True, highlight=False)
    try:
        repo = backend.open_repository(Path(path).resolve())
    except GitSubError as e:
        render.emit(err_console, (f"Error: {e}", "red"))
        raise click.Abort() from e
    ctx.call_on_close(repo.close)

    settings = load_settings(repo, force_color=force_color)
    ctx.obj = CliContext(
        repo=repo,
        root_dir=Path(repo.working_tree_dir).resolve(),
        settings=settings,
        console=render.make_console(settings),
        err_console=render.make_console(settings, stderr=True),
    )


@main.command()
@click.argument("pathspec", nargs=-1)
@click.option("--staged", "-S", is_flag=True, help="Only show staged changes")
@click.option(
    "--work-tree", "-w", is_flag=True, help="Only show working tree changes (unstaged)"
)
@click.option("--ignored", "-i", is_flag=True, help="Include ignored files")
@click.option(
    "--diff-filter",
    "-f",
    help=(
        "Filter changes by status: A = Added, D = Deleted, M = Modified, "
        "R = Renamed, T = Type changed, U = Unknown. Lowercase letters exclude."
    ),
)
@click.option("--short", "-s", is_flag=True, help="Only show a summary of dirty repositories")
@click.option("--patch", "-p", is_flag=True, help="Show patches")
@click.option(
    "--all", "-a", "show_all", is_flag=True, help="Show every repository, dirty or not"
)
@click.pass_obj
def status(
    obj: CliContext,
    pathspec: Tuple[str, ...],
    staged: bool,
    work_tree: bool,
    ignored: bool,
    diff_filter: Optional[str],
    short: bool,
    patch: bool,
    show_all: bool,
):
    """Collect status information across all submodules."""
    if staged and work_tree:
        raise click.UsageError("--staged and --work-tree are mutually exclusive")
    if staged:
        show = ShowOption.INDEX
    elif work_tree:
        show = ShowOption.WORKTREE
    else:
        show = ShowOption.BOTH
    options = StatusOptions(
        pathspec=list(pathspec),
        diff_filter=(
            DiffFilter.from_pattern(diff_filter) if diff_filter else DiffFilter.permissive()
        ),
        show=show,
        include_ignored=ignored,
        show_all=show_all,
        short=short,
        patch=patch,
    )
    try:
        for report in aggregate_status(obj.repo, options):
            render.print_status_report(obj.console, report, obj.root_dir, options)
    except GitSubError as e:
        raise obj.fail(e) from e


@main.command()
@click.argument("pathspec", nargs=-1)
@click.option("--all", "-a", "all_branches", is_flag=True, help="Search commits on all branches")
@click.option("--author", help="Filter commits by author (regular expression)")
@click.option("--grep", help="Filter commits by message (regular expression)")
@click.option(
    "--revision",
    "-r",
    help="Start from this revision of the root repository and the submodule commits it pins",
)
@click.option("--list", "-l", "list_files_", is_flag=True, help="List files of each commit")
@click.option("--full", "-f", is_flag=True, help="Show the long format of each commit")
@click.option("--patch", "-p", is_flag=True, help="Show the patch of each commit")
@click.option("--num", "-n", type=click.IntRange(min=0), help="Number of commits to show")
@click.option(
    "--start", "-s", type=click.IntRange(min=0), default=0, help="Number of commits to skip"
)
@click.pass_obj
def log(
    obj: CliContext,
    pathspec: Tuple[str, ...],
    all_branches: bool,
    author: Optional[str],
    grep: Optional[str],
    revision: Optional[str],
    list_files_: bool,
    full: bool,
    patch: bool,
    num: Optional[int],
    start: int,
):
    """Collect and show log across all submodules."""
    options = LogOptions(
        pathspec=list(pathspec),
        all_branches=all_branches,
        author=author,
        grep=grep,
        revision=revision,
        start=start,
        num=num if num is not None else obj.settings.log_limit,
        detail=LogDetail.FULL if full else LogDetail.ONELINE,
        list_files=list_files_,
        patch=patch,
    )
    now = datetime.now().astimezone()
    try:
        for entry in list_commits(obj.repo, options):
            render.print_commit(obj.console, entry, obj.root_dir, now, options)
    except GitSubError as e:
        raise obj.fail(e) from e


@main.command("ls-files")
@click.argument("pathspec", nargs=-1)
@click.option("--staged", "-s", is_flag=True, help="List files in the index")
@click.option(
    "--rev", "-r", "revision", help="List files at this revision of the root repository"
)
@click.pass_obj
def ls_files(
    obj: CliContext, pathspec: Tuple[str, ...], staged: bool, revision: Optional[str]
):
    """List files across all submodules."""
    if staged and revision:
        raise click.UsageError("--staged and --rev are mutually exclusive")
    options = LsFilesOptions(pathspec=list(pathspec), revision=revision, staged=staged)
    try:
        for listed in list_files(obj.repo, options):
            render.print_listed_file(obj.console, listed)
    except GitSubError as e:
        raise obj.fail(e) from e


if __name__ == "__main__":
    main()
