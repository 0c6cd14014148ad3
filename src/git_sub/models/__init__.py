"""Data models for git-sub."""

from .commit import CommitRecord, FrontierEntry
from .delta import Delta, DeltaStatus, ListedFile
from .repository import RepositoryNode, RepositoryState
from .status import RepoStatusReport, StatusEntry, StatusFlag

__all__ = [
    "CommitRecord",
    "Delta",
    "DeltaStatus",
    "FrontierEntry",
    "ListedFile",
    "RepoStatusReport",
    "RepositoryNode",
    "RepositoryState",
    "StatusEntry",
    "StatusFlag",
]
