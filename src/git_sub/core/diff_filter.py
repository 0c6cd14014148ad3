"""Classify changes into six categories and filter on them."""

from enum import Enum

from pydantic import BaseModel

from git_sub.models.delta import DeltaStatus
from git_sub.models.status import StatusFlag


class DiffCategory(str, Enum):
    ADDED = "A"
    DELETED = "D"
    MODIFIED = "M"
    RENAMED = "R"
    TYPE_CHANGED = "T"
    UNKNOWN = "U"


# First match wins, so a renamed-and-edited path counts as Modified.
_PRIORITY = (
    (StatusFlag.INDEX_NEW | StatusFlag.WT_NEW, DiffCategory.ADDED),
    (StatusFlag.INDEX_MODIFIED | StatusFlag.WT_MODIFIED, DiffCategory.MODIFIED),
    (StatusFlag.INDEX_DELETED | StatusFlag.WT_DELETED, DiffCategory.DELETED),
    (StatusFlag.INDEX_RENAMED | StatusFlag.WT_RENAMED, DiffCategory.RENAMED),
    (StatusFlag.INDEX_TYPECHANGE | StatusFlag.WT_TYPECHANGE, DiffCategory.TYPE_CHANGED),
)

_DELTA_FLAGS = {
    DeltaStatus.ADDED: StatusFlag.INDEX_NEW,
    DeltaStatus.COPIED: StatusFlag.INDEX_NEW,
    DeltaStatus.DELETED: StatusFlag.INDEX_DELETED,
    DeltaStatus.MODIFIED: StatusFlag.INDEX_MODIFIED,
    DeltaStatus.RENAMED: StatusFlag.INDEX_RENAMED,
    DeltaStatus.TYPE_CHANGED: StatusFlag.INDEX_TYPECHANGE,
    DeltaStatus.UNMERGED: StatusFlag.CONFLICTED,
}


def delta_status_flags(status: DeltaStatus) -> StatusFlag:
    """Express a tree-diff change kind as staged status bits."""
    return _DELTA_FLAGS.get(status, StatusFlag.CURRENT)


def classify(status: StatusFlag) -> DiffCategory:
    """Map raw status bits to exactly one category."""
    for mask, category in _PRIORITY:
        if status & mask:
            return category
    return DiffCategory.UNKNOWN


class DiffFilter(BaseModel):
    """Which change categories are let through."""

    added: bool = True
    deleted: bool = True
    modified: bool = True
    renamed: bool = True
    type_changed: bool = True
    unknown: bool = True

    @classmethod
    def permissive(cls) -> "DiffFilter":
        return cls()

    @classmethod
    def from_pattern(cls, pattern: str) -> "DiffFilter":
        """Build a filter from letters such as ``"AdM"``.

        Everything starts disabled. An uppercase A, D, M, R, T or U enables
        that category and the lowercase letter disables it again; any other
        character is ignored.
        """
        flags = dict.fromkeys(_FIELDS.values(), False)
        for char in pattern:
            field = _FIELDS.get(char.upper())
            if field is not None:
                flags[field] = char.isupper()
        return cls(**flags)

    def allows_category(self, category: DiffCategory) -> bool:
        return getattr(self, _FIELDS[category.value])

    def allows(self, status: StatusFlag) -> bool:
        return self.allows_category(classify(status))


_FIELDS = {
    DiffCategory.ADDED.value: "added",
    DiffCategory.DELETED.value: "deleted",
    DiffCategory.MODIFIED.value: "modified",
    DiffCategory.RENAMED.value: "renamed",
    DiffCategory.TYPE_CHANGED.value: "type_changed",
    DiffCategory.UNKNOWN.value: "unknown",
}
