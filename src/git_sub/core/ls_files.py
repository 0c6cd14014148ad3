"""List tracked files of the root repository and all nested submodules."""

import logging
import posixpath
import stat
from typing import Dict, Iterator, Optional

import git
from git import Repo

from git_sub.core import backend
from git_sub.core.pathspec import Pathspec
from git_sub.models.delta import GITLINK_MODE, ListedFile
from git_sub.models.options import LsFilesOptions

logger = logging.getLogger(__name__)


def _join(base: Optional[str], name: str) -> str:
    return posixpath.join(base, name) if base else name


def list_tree(
    repo: Repo,
    tree: git.Tree,
    pathspec: Pathspec,
    root_path: Optional[str] = None,
    repo_path: Optional[str] = None,
    registry: Optional[Dict[str, git.Submodule]] = None,
) -> Iterator[ListedFile]:
    """Walk ``tree`` and descend into commit-links.

    ``root_path`` is the tree's location relative to the root repository and
    drives pathspec matching; ``repo_path`` is its location inside ``repo``
    and is used to find submodules. They part ways at every mount point.
    """
    if registry is None:
        registry = backend.submodule_registry(repo)
    for item in tree:
        in_root = _join(root_path, item.name)
        in_repo = _join(repo_path, item.name)
        if item.type == "submodule":
            child, _ = backend.open_submodule(repo, in_repo, registry)
            try:
                yield from list_commit(child, item.hexsha, pathspec, in_root)
            finally:
                child.close()
        elif item.type == "tree":
            yield from list_tree(repo, item, pathspec, in_root, in_repo, registry)
        elif pathspec.matches(in_root):
            yield ListedFile(path=in_root, blob_id=item.hexsha)


def list_commit(
    repo: Repo, revision: str, pathspec: Pathspec, root_path: Optional[str] = None
) -> Iterator[ListedFile]:
    commit = backend.resolve_revision(repo, revision)
    logger.debug("Listing %s at %s", root_path or ".", commit.hexsha)
    yield from list_tree(repo, commit.tree, pathspec, root_path, None)


def list_index(repo: Repo, pathspec: Pathspec) -> Iterator[ListedFile]:
    """Walk the index; gitlink entries list the commit the index records."""
    registry = backend.submodule_registry(repo)
    for entry in backend.index_entries(repo):
        if stat.S_IFMT(entry.mode) == GITLINK_MODE:
            child, _ = backend.open_submodule(repo, entry.path, registry)
            try:
                yield from list_commit(child, entry.hexsha, pathspec, entry.path)
            finally:
                child.close()
        elif pathspec.matches(entry.path):
            yield ListedFile(path=entry.path, blob_id=entry.hexsha)


def list_files(root: Repo, options: LsFilesOptions) -> Iterator[ListedFile]:
    pathspec = Pathspec(options.pathspec)
    if options.staged:
        return list_index(root, pathspec)
    return list_commit(root, options.revision or "HEAD", pathspec)
