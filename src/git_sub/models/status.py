"""Working-tree and index status models."""

from enum import IntFlag
from typing import List, Optional

from git import Repo
from pydantic import BaseModel

from .repository import RepositoryState


class StatusFlag(IntFlag):
    """Raw status bits of one path, split between index and worktree."""

    CURRENT = 0
    INDEX_NEW = 1 << 0
    INDEX_MODIFIED = 1 << 1
    INDEX_DELETED = 1 << 2
    INDEX_RENAMED = 1 << 3
    INDEX_TYPECHANGE = 1 << 4
    WT_NEW = 1 << 7
    WT_MODIFIED = 1 << 8
    WT_DELETED = 1 << 9
    WT_TYPECHANGE = 1 << 10
    WT_RENAMED = 1 << 11
    IGNORED = 1 << 14
    CONFLICTED = 1 << 15


INDEX_MASK = (
    StatusFlag.INDEX_NEW
    | StatusFlag.INDEX_MODIFIED
    | StatusFlag.INDEX_DELETED
    | StatusFlag.INDEX_RENAMED
    | StatusFlag.INDEX_TYPECHANGE
)
WORKTREE_MASK = (
    StatusFlag.WT_NEW
    | StatusFlag.WT_MODIFIED
    | StatusFlag.WT_DELETED
    | StatusFlag.WT_TYPECHANGE
    | StatusFlag.WT_RENAMED
    | StatusFlag.IGNORED
    | StatusFlag.CONFLICTED
)


class StatusEntry(BaseModel):
    """One path reported by status; ``old_path`` is set for renames only."""

    path: str
    old_path: Optional[str] = None
    status: StatusFlag = StatusFlag.CURRENT

    @property
    def index_status(self) -> StatusFlag:
        return self.status & INDEX_MASK

    @property
    def worktree_status(self) -> StatusFlag:
        return self.status & WORKTREE_MASK

    @property
    def is_staged(self) -> bool:
        return bool(self.index_status)

    @property
    def is_rename(self) -> bool:
        return bool(self.status & (StatusFlag.INDEX_RENAMED | StatusFlag.WT_RENAMED))

    def restricted(self, mask: StatusFlag) -> Optional["StatusEntry"]:
        """Return a copy carrying only the bits in ``mask``, or None if none remain."""
        status = self.status & mask
        if not status:
            return None
        renamed = status & (StatusFlag.INDEX_RENAMED | StatusFlag.WT_RENAMED)
        return StatusEntry(
            path=self.path,
            old_path=self.old_path if renamed else None,
            status=status,
        )


class RepoStatusReport(BaseModel):
    """Status of one repository of the forest, excluding its submodules."""

    repo: Repo
    mount_path: str = ""
    head: Optional[str] = None
    pinned: Optional[str] = None
    state: RepositoryState = RepositoryState.CLEAN
    index_entries: List[StatusEntry] = []
    worktree_entries: List[StatusEntry] = []

    model_config = {"arbitrary_types_allowed": True}

    @property
    def head_drift(self) -> bool:
        """True when the checked-out commit is not the one the parent pins."""
        return self.pinned is not None and self.head != self.pinned

    @property
    def is_dirty(self) -> bool:
        return bool(
            self.index_entries
            or self.worktree_entries
            or self.state != RepositoryState.CLEAN
            or self.head_drift
        )
