"""Root-relative pathspecs and mapping of paths across mount points.

Patterns follow git's default pathspec rules: a pattern matches a path that
equals it, any path below it when it names a directory, or any path it
matches as a glob (``*`` also crosses ``/``). Patterns prefixed with ``:!``,
``:^`` or ``:(exclude)`` remove matches instead.
"""

import fnmatch
import posixpath
from typing import Iterable, List, Optional, Sequence

from git_sub.models.delta import Delta

_EXCLUDE_PREFIXES = (":(exclude)", ":!", ":^")
_GLOB_CHARS = set("*?[")


def _normalize(pattern: str) -> str:
    pattern = pattern.replace("\\", "/")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    pattern = pattern.rstrip("/")
    return "" if pattern == "." else pattern


def _matches_pattern(pattern: str, path: str) -> bool:
    if not pattern:
        return True
    if path == pattern or path.startswith(pattern + "/"):
        return True
    if _GLOB_CHARS.intersection(pattern):
        return fnmatch.fnmatchcase(path, pattern)
    return False


class Pathspec:
    """An ordered set of patterns relative to the root working directory."""

    def __init__(self, patterns: Optional[Iterable[str]] = None):
        self.patterns: List[str] = list(patterns or [])
        self._include: List[str] = []
        self._exclude: List[str] = []
        for raw in self.patterns:
            for prefix in _EXCLUDE_PREFIXES:
                if raw.startswith(prefix):
                    self._exclude.append(_normalize(raw[len(prefix):]))
                    break
            else:
                self._include.append(_normalize(raw))

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __repr__(self) -> str:
        return f"Pathspec({self.patterns!r})"

    def matches(self, path: str) -> bool:
        """Whether a root-relative path is selected. Empty pathspecs select all."""
        path = path.replace("\\", "/").lstrip("/")
        if self._include and not any(_matches_pattern(p, path) for p in self._include):
            return False
        return not any(_matches_pattern(p, path) for p in self._exclude)

    def matches_any(self, paths: Iterable[str]) -> bool:
        return any(self.matches(p) for p in paths)


def map_path(mount_path: str, repo_path: str) -> str:
    """Rewrite a repository-relative path into a root-relative one."""
    if not mount_path:
        return repo_path
    return posixpath.join(mount_path, repo_path)


def delta_root_paths(delta: Delta, mount_path: str) -> Sequence[str]:
    """Root-relative paths a delta touches: both sides for a rename."""
    if delta.is_rename:
        return (map_path(mount_path, delta.new_path), map_path(mount_path, delta.old_path))
    return (map_path(mount_path, delta.new_path),)


def deltas_match(deltas: Iterable[Delta], mount_path: str, pathspec: Pathspec) -> bool:
    return any(pathspec.matches_any(delta_root_paths(d, mount_path)) for d in deltas)
