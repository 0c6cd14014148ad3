"""Discovery of the repository forest formed by nested submodules.

Two ways to look at the forest:

* ``discover_forest`` opens every submodule currently checked out, giving a
  tree of ``RepositoryNode`` objects for the present state.
* ``revision_heads`` starts from one commit of the root and follows the
  commit-links recorded in that commit's tree, giving the commit of every
  nested repository as of that revision.

A submodule that cannot be opened aborts the whole discovery.
"""

import logging
import posixpath
from typing import Iterator, List, Optional, Tuple

from git import Repo

from git_sub.core import backend
from git_sub.models.repository import RepositoryNode

logger = logging.getLogger(__name__)


def child_mount_path(mount_path: str, path: str) -> str:
    return posixpath.join(mount_path, path) if mount_path else path


def iter_submodules(repo: Repo) -> Iterator[Tuple[str, Repo, Optional[str]]]:
    """Yield ``(path, child, pinned_id)`` for each submodule of ``repo``.

    The child repository is closed once the consumer moves past it.
    """
    registry = backend.submodule_registry(repo)
    for path in registry:
        child, pinned = backend.open_submodule(repo, path, registry)
        try:
            yield path, child, pinned
        finally:
            child.close()


def discover_forest(
    repo: Repo, mount_path: str = "", pinned: Optional[str] = None
) -> RepositoryNode:
    """Open ``repo`` and all of its submodules, recursively."""
    node = RepositoryNode(repo=repo, mount_path=mount_path, pinned=pinned)
    try:
        registry = backend.submodule_registry(repo)
        for path in registry:
            child, child_pin = backend.open_submodule(repo, path, registry)
            try:
                subtree = discover_forest(
                    child, child_mount_path(mount_path, path), child_pin
                )
            except Exception:
                child.close()
                raise
            node.children.append(subtree)
    except Exception:
        node.close()
        raise
    logger.debug(
        "Discovered %s with %d submodule(s)", mount_path or ".", len(node.children)
    )
    return node


def collect_repositories(root: RepositoryNode) -> List[RepositoryNode]:
    """Flatten a forest into a list, root first."""
    return list(root.walk())


def revision_heads(
    repo: Repo, commit_id: str, mount_path: str = ""
) -> List[Tuple[RepositoryNode, str]]:
    """Resolve the nested repositories' commits as of one revision of ``repo``.

    Walks the tree of ``commit_id`` and, for each commit-link found, opens the
    submodule, looks up the linked commit inside it and recurses into that
    commit's tree. Returns ``(node, commit_id)`` pairs for the nested
    repositories only; the caller owns (and must close) the returned nodes.
    """
    commit = backend.resolve_revision(repo, commit_id)
    heads: List[Tuple[RepositoryNode, str]] = []
    registry = backend.submodule_registry(repo)
    try:
        for item in commit.tree.traverse():
            if item.type != "submodule":
                continue
            child, _ = backend.open_submodule(repo, item.path, registry)
            node = RepositoryNode(
                repo=child,
                mount_path=child_mount_path(mount_path, item.path),
                pinned=item.hexsha,
            )
            heads.append((node, item.hexsha))
            heads.extend(revision_heads(child, item.hexsha, node.mount_path))
    except Exception:
        for node, _ in heads:
            node.repo.close()
        raise
    return heads
