"""Exceptions raised by git-sub.

Every error here is fatal to the operation that raised it. Callers report
it and stop; nothing is retried or skipped.
"""


class GitSubError(Exception):
    """Base class for git-sub errors."""


class NotARepository(GitSubError):
    """A path does not hold a git repository with a working directory."""


class SubmoduleUnavailable(GitSubError):
    """A submodule is not registered, not initialized, or cannot be opened."""


class UnknownRevision(GitSubError):
    """A revision string or commit id does not resolve to a commit."""


class ObjectReadError(GitSubError):
    """A required object, file or git command output could not be read."""


class InvalidPattern(GitSubError):
    """An author or message filter is not a valid regular expression."""
