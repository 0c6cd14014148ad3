"""Tree-level change models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

GITLINK_MODE = 0o160000
NULL_HEXSHA = "0" * 40


class DeltaStatus(str, Enum):
    """Raw change kind reported by a tree-to-tree diff."""

    ADDED = "A"
    DELETED = "D"
    MODIFIED = "M"
    RENAMED = "R"
    COPIED = "C"
    TYPE_CHANGED = "T"
    UNMERGED = "U"
    UNKNOWN = "X"


class Delta(BaseModel):
    """One changed path between two trees of the same repository.

    Paths are relative to that repository's working directory.
    """

    status: DeltaStatus
    old_path: str
    new_path: str
    old_id: str = NULL_HEXSHA
    new_id: str = NULL_HEXSHA
    old_mode: Optional[int] = None
    new_mode: Optional[int] = None

    @property
    def is_rename(self) -> bool:
        return self.status == DeltaStatus.RENAMED

    @property
    def is_gitlink(self) -> bool:
        return self.old_mode == GITLINK_MODE or self.new_mode == GITLINK_MODE


class ListedFile(BaseModel):
    """A tracked file and its blob id, path relative to the root repository."""

    path: str
    blob_id: str
