"""Primitive git operations, implemented over GitPython.

Everything the engine needs from git goes through this module so the rest
of the package works with plain models and a small set of exceptions.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import git
from git import Repo
from git.exc import (
    BadName,
    BadObject,
    GitCommandError,
    GitError,
    InvalidGitRepositoryError,
    NoSuchPathError,
)

from git_sub.core.errors import (
    NotARepository,
    ObjectReadError,
    SubmoduleUnavailable,
    UnknownRevision,
)
from git_sub.models.delta import NULL_HEXSHA, Delta, DeltaStatus
from git_sub.models.repository import RepositoryState
from git_sub.models.status import StatusEntry, StatusFlag

logger = logging.getLogger(__name__)

_INDEX_CODES = {
    "A": StatusFlag.INDEX_NEW,
    "C": StatusFlag.INDEX_NEW,
    "M": StatusFlag.INDEX_MODIFIED,
    "D": StatusFlag.INDEX_DELETED,
    "R": StatusFlag.INDEX_RENAMED,
    "T": StatusFlag.INDEX_TYPECHANGE,
}
_WORKTREE_CODES = {
    "A": StatusFlag.WT_NEW,
    "M": StatusFlag.WT_MODIFIED,
    "D": StatusFlag.WT_DELETED,
    "R": StatusFlag.WT_RENAMED,
    "T": StatusFlag.WT_TYPECHANGE,
}
_UNMERGED = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


def open_repository(path, search_parent_directories: bool = True) -> Repo:
    """Open the repository containing ``path``."""
    try:
        repo = Repo(path, search_parent_directories=search_parent_directories)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise NotARepository(f"Not a git repository: {path}") from e
    if repo.bare or repo.working_tree_dir is None:
        repo.close()
        raise NotARepository(f"Repository has no working directory: {path}")
    logger.debug("Opened repository %s", repo.working_tree_dir)
    return repo


def submodule_registry(repo: Repo) -> Dict[str, git.Submodule]:
    """Submodules registered at ``repo``'s HEAD, keyed by workdir-relative path."""
    if not repo.head.is_valid():
        return {}
    try:
        return {sm.path: sm for sm in repo.submodules}
    except (GitError, ValueError, KeyError) as e:
        raise SubmoduleUnavailable(
            f"Cannot read submodules of {repo.working_tree_dir}: {e}"
        ) from e


def open_submodule(
    repo: Repo, path: str, registry: Optional[Dict[str, git.Submodule]] = None
) -> Tuple[Repo, Optional[str]]:
    """Open the submodule checked out at ``path`` inside ``repo``.

    Returns the child repository and the commit the parent's HEAD tree pins
    for it (None when HEAD records no pin at that path). Callers opening
    several submodules of one repository pass the ``submodule_registry``.
    """
    path = path.replace("\\", "/").strip("/")
    if registry is None:
        registry = submodule_registry(repo)

    submodule = registry.get(path)
    try:
        if submodule is not None:
            child = submodule.module()
            pinned = submodule.hexsha
        else:
            # Not registered at HEAD, e.g. it only exists in an older revision.
            child = Repo(Path(repo.working_tree_dir) / path)
            pinned = head_tree_entry_id(repo, path)
    except (GitError, ValueError, OSError) as e:
        raise SubmoduleUnavailable(
            f"Submodule '{path}' of {repo.working_tree_dir} is not available "
            f"(not initialized?): {e}"
        ) from e

    logger.debug("Opened submodule %s pinned at %s", path, pinned)
    return child, pinned


def resolve_revision(repo: Repo, rev: str) -> git.Commit:
    """Resolve a revision string or commit id to a commit object."""
    try:
        return repo.commit(rev)
    except (BadName, BadObject, ValueError, GitCommandError) as e:
        raise UnknownRevision(
            f"Cannot resolve revision '{rev}' in {repo.working_tree_dir}"
        ) from e


def head_commit(repo: Repo) -> Optional[git.Commit]:
    """The checked-out commit, or None while HEAD is unborn."""
    if not repo.head.is_valid():
        return None
    return repo.head.commit


def branch_heads(repo: Repo) -> List[git.Commit]:
    """Tip commits of all local and remote-tracking branches."""
    commits = []
    for ref in repo.refs:
        if not isinstance(ref, (git.Head, git.RemoteReference)):
            continue
        if ref.name.endswith("/HEAD"):
            continue
        try:
            commits.append(ref.commit)
        except ValueError as e:
            raise ObjectReadError(f"Branch {ref.name} does not point to a commit") from e
    return commits


def head_tree_entry_id(repo: Repo, path: str) -> Optional[str]:
    """Object id recorded at ``path`` in HEAD's tree."""
    commit = head_commit(repo)
    if commit is None:
        return None
    try:
        return (commit.tree / path).hexsha
    except KeyError:
        return None


def _delta_from_diff(diff: git.Diff) -> Delta:
    try:
        status = DeltaStatus(diff.change_type)
    except ValueError:
        status = DeltaStatus.UNKNOWN
    return Delta(
        status=status,
        old_path=diff.a_path or diff.b_path,
        new_path=diff.b_path or diff.a_path,
        old_id=diff.a_blob.hexsha if diff.a_blob is not None else NULL_HEXSHA,
        new_id=diff.b_blob.hexsha if diff.b_blob is not None else NULL_HEXSHA,
        old_mode=diff.a_mode,
        new_mode=diff.b_mode,
    )


def tree_diff(repo: Repo, old: Optional[str], new: str) -> List[Delta]:
    """Changes from commit ``old`` to commit ``new`` with rename detection.

    ``old=None`` compares against the empty tree.
    """
    new_commit = resolve_revision(repo, new)
    if old is None:
        return [
            Delta(
                status=DeltaStatus.ADDED,
                old_path=item.path,
                new_path=item.path,
                new_id=item.hexsha,
                new_mode=item.mode,
            )
            for item in new_commit.tree.traverse()
            if item.type != "tree"
        ]
    old_commit = resolve_revision(repo, old)
    try:
        diffs = old_commit.diff(new_commit)
    except GitCommandError as e:
        raise ObjectReadError(f"Cannot diff {old[:7]}..{new[:7]}: {e}") from e
    return [_delta_from_diff(d) for d in diffs]


def _porcelain_flags(xy: str) -> StatusFlag:
    if xy == "??":
        return StatusFlag.WT_NEW
    if xy == "!!":
        return StatusFlag.IGNORED
    if xy in _UNMERGED:
        return StatusFlag.CONFLICTED
    return _INDEX_CODES.get(xy[0], StatusFlag.CURRENT) | _WORKTREE_CODES.get(
        xy[1], StatusFlag.CURRENT
    )


def parse_porcelain(output: str) -> List[StatusEntry]:
    """Parse ``git status --porcelain=v1 -z`` output."""
    records = output.split("\0")
    entries = []
    i = 0
    while i < len(records):
        record = records[i]
        i += 1
        if len(record) < 4:
            continue
        xy, path = record[:2], record[3:]
        old_path = None
        if xy[0] in "RC" or xy[1] in "RC":
            old_path = records[i] if i < len(records) else None
            i += 1
        status = _porcelain_flags(xy)
        renamed = status & (StatusFlag.INDEX_RENAMED | StatusFlag.WT_RENAMED)
        entries.append(
            StatusEntry(path=path, old_path=old_path if renamed else None, status=status)
        )
    return entries


def status_entries(
    repo: Repo,
    *,
    exclude_submodules: bool = True,
    include_untracked: bool = True,
    include_ignored: bool = False,
    recurse_untracked_dirs: bool = False,
    detect_renames: bool = True,
    pathspec: Optional[List[str]] = None,
) -> List[StatusEntry]:
    """Index-vs-HEAD and worktree-vs-index status of one repository."""
    args = ["--porcelain=v1", "-z"]
    args.append("--ignore-submodules=all" if exclude_submodules else "--ignore-submodules=none")
    if not include_untracked:
        args.append("--untracked-files=no")
    elif recurse_untracked_dirs:
        args.append("--untracked-files=all")
    else:
        args.append("--untracked-files=normal")
    if include_ignored:
        args.append("--ignored")
    args.append("--renames" if detect_renames else "--no-renames")
    if pathspec:
        args.append("--")
        args.extend(pathspec)
    try:
        output = repo.git.status(*args)
    except GitCommandError as e:
        raise ObjectReadError(f"git status failed in {repo.working_tree_dir}: {e}") from e
    return parse_porcelain(output)


def repository_state(repo: Repo) -> RepositoryState:
    """Whether a merge, rebase, bisect or similar is in progress."""
    git_dir = Path(repo.git_dir)

    def exists(name: str) -> bool:
        return (git_dir / name).exists()

    if exists("rebase-merge/interactive"):
        return RepositoryState.REBASE_INTERACTIVE
    if exists("rebase-merge"):
        return RepositoryState.REBASE_MERGE
    if exists("rebase-apply/rebasing"):
        return RepositoryState.REBASE
    if exists("rebase-apply/applying"):
        return RepositoryState.APPLY_MAILBOX
    if exists("rebase-apply"):
        return RepositoryState.APPLY_MAILBOX_OR_REBASE
    if exists("MERGE_HEAD"):
        return RepositoryState.MERGE
    if exists("REVERT_HEAD"):
        if exists("sequencer/todo"):
            return RepositoryState.REVERT_SEQUENCE
        return RepositoryState.REVERT
    if exists("CHERRY_PICK_HEAD"):
        if exists("sequencer/todo"):
            return RepositoryState.CHERRY_PICK_SEQUENCE
        return RepositoryState.CHERRY_PICK
    if exists("BISECT_LOG"):
        return RepositoryState.BISECT
    return RepositoryState.CLEAN


def read_blob(repo: Repo, blob_id: str) -> bytes:
    if blob_id == NULL_HEXSHA:
        return b""
    try:
        return repo.odb.stream(bytes.fromhex(blob_id)).read()
    except (BadObject, ValueError, GitCommandError) as e:
        raise ObjectReadError(f"Cannot read blob {blob_id} in {repo.working_tree_dir}") from e


def read_workdir_file(repo: Repo, path: str) -> bytes:
    try:
        return (Path(repo.working_tree_dir) / path).read_bytes()
    except OSError as e:
        raise ObjectReadError(f"Cannot read {path}: {e}") from e


def index_blob_id(repo: Repo, path: str) -> Optional[str]:
    entry = repo.index.entries.get((path, 0))
    return entry.hexsha if entry is not None else None


def index_entries(repo: Repo) -> List[git.IndexEntry]:
    """Stage-0 index entries ordered by path."""
    entries = [e for (_, stage), e in repo.index.entries.items() if stage == 0]
    return sorted(entries, key=lambda e: e.path)
