"""Per-repository status across the forest, with head-drift detection."""

import logging
from typing import Iterator, List, Optional

from git import Repo

from git_sub.core import backend, forest
from git_sub.core.pathspec import Pathspec, map_path
from git_sub.models.options import StatusOptions
from git_sub.models.status import (
    INDEX_MASK,
    WORKTREE_MASK,
    RepoStatusReport,
    StatusEntry,
    StatusFlag,
)

logger = logging.getLogger(__name__)


def _entry_paths(entry: StatusEntry, mount_path: str) -> List[str]:
    paths = [map_path(mount_path, entry.path)]
    if entry.old_path:
        paths.append(map_path(mount_path, entry.old_path))
    return paths


def select_entries(
    entries: List[StatusEntry],
    mask: StatusFlag,
    options: StatusOptions,
    pathspec: Pathspec,
    mount_path: str,
) -> List[StatusEntry]:
    """Entries with bits in ``mask`` that pass the category filter and pathspec."""
    selected = []
    for entry in entries:
        part = entry.restricted(mask)
        if part is None:
            continue
        if not options.diff_filter.allows(part.status):
            continue
        if pathspec and not pathspec.matches_any(_entry_paths(part, mount_path)):
            continue
        selected.append(part)
    return selected


def repository_status(
    repo: Repo,
    options: StatusOptions,
    mount_path: str = "",
    pinned: Optional[str] = None,
    pathspec: Optional[Pathspec] = None,
) -> RepoStatusReport:
    """Status of ``repo`` alone; submodule contents are not included."""
    if pathspec is None:
        pathspec = Pathspec(options.pathspec)
    raw = backend.status_entries(
        repo,
        exclude_submodules=True,
        include_untracked=True,
        include_ignored=options.include_ignored,
        # Collapsed "dir/" entries would hide the files a pathspec names.
        recurse_untracked_dirs=options.recurse_untracked_dirs or bool(pathspec),
        detect_renames=True,
    )
    index_entries = []
    worktree_entries = []
    if options.wants_index:
        index_entries = select_entries(raw, INDEX_MASK, options, pathspec, mount_path)
    if options.wants_worktree:
        worktree_entries = select_entries(raw, WORKTREE_MASK, options, pathspec, mount_path)

    head = backend.head_commit(repo)
    return RepoStatusReport(
        repo=repo,
        mount_path=mount_path,
        head=head.hexsha if head is not None else None,
        pinned=pinned,
        state=backend.repository_state(repo),
        index_entries=index_entries,
        worktree_entries=worktree_entries,
    )


def aggregate_status(
    repo: Repo,
    options: StatusOptions,
    mount_path: str = "",
    pinned: Optional[str] = None,
    pathspec: Optional[Pathspec] = None,
) -> Iterator[RepoStatusReport]:
    """Yield the report of every repository worth showing, depth first.

    A repository is shown when ``show_all`` is set, it has filtered index or
    worktree entries, an operation is in progress, or its checked-out commit
    differs from the pin recorded by its parent. Submodules are visited
    whether or not their parent is shown, each compared with its own pin.
    """
    if pathspec is None:
        pathspec = Pathspec(options.pathspec)
    report = repository_status(repo, options, mount_path, pinned, pathspec)
    if options.show_all or report.is_dirty:
        yield report
    else:
        logger.debug("Nothing to report for %s", mount_path or ".")

    for path, child, child_pin in forest.iter_submodules(repo):
        yield from aggregate_status(
            child,
            options,
            forest.child_mount_path(mount_path, path),
            child_pin,
            pathspec,
        )
