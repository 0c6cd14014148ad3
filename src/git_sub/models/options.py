"""Request options for the log, status and ls-files operations."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from git_sub.core.diff_filter import DiffFilter


class LogDetail(str, Enum):
    """How much of each commit the log prints."""

    ONELINE = "oneline"
    FULL = "full"


class ShowOption(str, Enum):
    """Which half of the status to compute."""

    INDEX = "index"
    WORKTREE = "worktree"
    BOTH = "both"


class LogOptions(BaseModel):
    """Filters and pagination for listing commits across the forest."""

    pathspec: List[str] = []
    all_branches: bool = False
    author: Optional[str] = None
    grep: Optional[str] = None
    revision: Optional[str] = None
    start: int = Field(default=0, ge=0)
    num: Optional[int] = Field(default=None, ge=0)
    detail: LogDetail = LogDetail.ONELINE
    list_files: bool = False
    patch: bool = False


class StatusOptions(BaseModel):
    pathspec: List[str] = []
    diff_filter: DiffFilter = Field(default_factory=DiffFilter.permissive)
    show: ShowOption = ShowOption.BOTH
    include_ignored: bool = False
    show_all: bool = False
    short: bool = False
    patch: bool = False

    @property
    def wants_index(self) -> bool:
        return self.show in (ShowOption.BOTH, ShowOption.INDEX)

    @property
    def wants_worktree(self) -> bool:
        return self.show in (ShowOption.BOTH, ShowOption.WORKTREE)

    @property
    def recurse_untracked_dirs(self) -> bool:
        # Patches need every untracked file, not just its directory.
        return self.patch


class LsFilesOptions(BaseModel):
    pathspec: List[str] = []
    revision: Optional[str] = None
    staged: bool = False
