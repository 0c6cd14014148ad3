"""Repository node model for the submodule forest."""

import os
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

from git import Repo
from pydantic import BaseModel


class RepositoryState(str, Enum):
    """Operational state of a repository."""

    CLEAN = "Clean"
    MERGE = "Merge"
    REVERT = "Revert"
    REVERT_SEQUENCE = "RevertSequence"
    CHERRY_PICK = "CherryPick"
    CHERRY_PICK_SEQUENCE = "CherryPickSequence"
    BISECT = "Bisect"
    REBASE = "Rebase"
    REBASE_INTERACTIVE = "RebaseInteractive"
    REBASE_MERGE = "RebaseMerge"
    APPLY_MAILBOX = "ApplyMailbox"
    APPLY_MAILBOX_OR_REBASE = "ApplyMailboxOrRebase"


class RepositoryNode(BaseModel):
    """An open repository and the submodules reached through it.

    Nodes own their children. There is no parent pointer: the mount path
    (root-relative, POSIX separators, empty for the root) and the pin
    recorded by the parent are handed down when the node is created.
    """

    repo: Repo
    mount_path: str = ""
    pinned: Optional[str] = None
    children: List["RepositoryNode"] = []

    model_config = {"arbitrary_types_allowed": True}

    @property
    def working_dir(self) -> Path:
        return Path(self.repo.working_tree_dir)

    @property
    def key(self) -> str:
        """Identity of the underlying repository (its resolved git dir)."""
        return os.path.realpath(self.repo.git_dir)

    @property
    def is_root(self) -> bool:
        return self.mount_path == ""

    def walk(self) -> Iterator["RepositoryNode"]:
        """Yield this node and every descendant, parents before children."""
        yield self
        for child in self.children:
            yield from child.walk()

    def close(self) -> None:
        """Release this node's children and their repositories."""
        for child in self.children:
            child.close()
            child.repo.close()


RepositoryNode.model_rebuild()
