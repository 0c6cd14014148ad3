"""One newest-first commit stream across every repository of the forest."""

import heapq
import itertools
import logging
import re
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Pattern, Set, Tuple

import git
from git import Repo

from git_sub.core import backend, forest
from git_sub.core.errors import InvalidPattern
from git_sub.core.pathspec import Pathspec, deltas_match
from git_sub.models.commit import CommitRecord, FrontierEntry
from git_sub.models.options import LogOptions
from git_sub.models.repository import RepositoryNode

logger = logging.getLogger(__name__)

_SortKey = Tuple[int, int, str]


def make_entry(node: RepositoryNode, commit: git.Commit, mount_path: str) -> FrontierEntry:
    return FrontierEntry(
        record=CommitRecord.from_commit(commit), node=node, mount_path=mount_path
    )


def load_entry(node: RepositoryNode, commit_id: str, mount_path: str) -> FrontierEntry:
    return make_entry(node, backend.resolve_revision(node.repo, commit_id), mount_path)


class CommitFrontierWalker:
    """K-way merge of several commit graphs ordered by committer time.

    The frontier is a heap of entries keyed on (newest timestamp, repository
    seeding order, commit id). Popping an entry pushes its parents, which
    stay in the same repository under the same mount path. A commit reached
    along more than one path is emitted once: identical keys sitting on top
    of the heap are dropped together, and parents already emitted (possible
    when committer clocks are skewed) are never pushed again.

    The walker is a one-shot iterator.
    """

    def __init__(self, heads: Iterable[FrontierEntry]):
        self._heap: List[Tuple[_SortKey, int, FrontierEntry]] = []
        self._ranks: Dict[str, int] = {}
        self._emitted: Set[Tuple[int, str]] = set()
        self._counter = itertools.count()
        for entry in heads:
            self._push(entry)
        logger.debug(
            "Walker seeded with %d head(s) over %d repositories",
            len(self._heap),
            len(self._ranks),
        )

    def __len__(self) -> int:
        return len(self._heap)

    def _sort_key(self, entry: FrontierEntry) -> _SortKey:
        rank = self._ranks.setdefault(entry.node.key, len(self._ranks))
        return (-entry.timestamp, rank, entry.hexsha)

    def _push(self, entry: FrontierEntry) -> None:
        key = self._sort_key(entry)
        if key[1:] in self._emitted:
            return
        heapq.heappush(self._heap, (key, next(self._counter), entry))

    def __iter__(self) -> "CommitFrontierWalker":
        return self

    def __next__(self) -> FrontierEntry:
        if not self._heap:
            logger.debug("Frontier exhausted after %d commit(s)", len(self._emitted))
            raise StopIteration
        key, _, entry = heapq.heappop(self._heap)
        while self._heap and self._heap[0][0] == key:
            heapq.heappop(self._heap)
        self._emitted.add(key[1:])
        for parent_id in entry.record.parents:
            self._push(load_entry(entry.node, parent_id, entry.mount_path))
        return entry


def seed_current_heads(
    nodes: Iterable[RepositoryNode], all_branches: bool = False
) -> List[FrontierEntry]:
    """One entry per checked-out commit, or per branch tip with ``all_branches``."""
    entries = []
    for node in nodes:
        if all_branches:
            commits = backend.branch_heads(node.repo)
        else:
            head = backend.head_commit(node.repo)
            commits = [head] if head is not None else []
        if not commits:
            logger.debug("No commits to walk in %s", node.mount_path or ".")
        for commit in commits:
            entries.append(make_entry(node, commit, node.mount_path))
    return entries


def seed_revision(
    root: RepositoryNode, revision: str
) -> Tuple[List[FrontierEntry], List[RepositoryNode]]:
    """Entries for one root revision and the submodule commits it pins.

    Also returns the nested nodes opened along the way; the caller closes them.
    """
    commit = backend.resolve_revision(root.repo, revision)
    logger.debug("Resolved %s to %s", revision, commit.hexsha)
    heads = forest.revision_heads(root.repo, commit.hexsha)
    nested = [node for node, _ in heads]
    try:
        entries = [make_entry(root, commit, root.mount_path)]
        entries.extend(load_entry(node, cid, node.mount_path) for node, cid in heads)
    except Exception:
        for node in nested:
            node.repo.close()
        raise
    return entries, nested


def compile_pattern(pattern: Optional[str], what: str) -> Optional[Pattern]:
    if pattern is None:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPattern(f"Invalid {what} pattern '{pattern}': {e}") from e


def commit_touches(entry: FrontierEntry, pathspec: Pathspec) -> bool:
    """Whether the commit changes a matching path against any of its parents.

    Paths are diffed inside the commit's own repository and prefixed with
    the entry's mount path before matching. A commit without parents never
    matches.
    """
    return any(
        deltas_match(
            backend.tree_diff(entry.repo, parent, entry.hexsha),
            entry.mount_path,
            pathspec,
        )
        for parent in entry.record.parents
    )


def filter_commits(
    entries: Iterable[FrontierEntry], options: LogOptions
) -> Iterator[FrontierEntry]:
    """Apply the message, author and pathspec filters in that order."""
    grep = compile_pattern(options.grep, "message")
    author = compile_pattern(options.author, "author")
    pathspec = Pathspec(options.pathspec)
    for entry in entries:
        if grep is not None and not grep.search(entry.record.message):
            continue
        if author is not None and not author.search(entry.record.author):
            continue
        if pathspec and not commit_touches(entry, pathspec):
            continue
        yield entry


def paginate(
    entries: Iterable[FrontierEntry], start: int = 0, num: Optional[int] = None
) -> Iterator[FrontierEntry]:
    """Skip ``start`` entries, then take at most ``num`` (all when None)."""
    stop = None if num is None else start + num
    return itertools.islice(entries, start, stop)


def list_commits(root: Repo, options: LogOptions) -> Iterator[FrontierEntry]:
    """Commits of the root repository and all submodules, newest first.

    Repositories opened for the walk are closed when the iterator is
    exhausted or closed.
    """
    # Fail on bad patterns before any repository is opened.
    compile_pattern(options.grep, "message")
    compile_pattern(options.author, "author")

    root_node = RepositoryNode(repo=root)
    cleanup: Callable[[], None]
    if options.revision:
        heads, nested = seed_revision(root_node, options.revision)

        def cleanup() -> None:
            for node in nested:
                node.repo.close()

    else:
        tree = forest.discover_forest(root)
        try:
            heads = seed_current_heads(forest.collect_repositories(tree), options.all_branches)
        except Exception:
            tree.close()
            raise
        cleanup = tree.close

    try:
        walker = CommitFrontierWalker(heads)
        yield from paginate(filter_commits(walker, options), options.start, options.num)
    finally:
        cleanup()
