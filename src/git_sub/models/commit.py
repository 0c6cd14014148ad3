"""Commit models used by the history walker."""

from typing import List

import git
from pydantic import BaseModel

from .repository import RepositoryNode


class CommitRecord(BaseModel):
    """Plain data read from one commit object."""

    hexsha: str
    parents: List[str] = []
    message: str = ""
    author_name: str = ""
    author_email: str = ""
    authored_date: int = 0
    author_tz_offset: int = 0
    committer_name: str = ""
    committer_email: str = ""
    committed_date: int = 0
    committer_tz_offset: int = 0

    model_config = {"frozen": True}

    @classmethod
    def from_commit(cls, commit: git.Commit) -> "CommitRecord":
        message = commit.message
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        return cls(
            hexsha=commit.hexsha,
            parents=[p.hexsha for p in commit.parents],
            message=message,
            author_name=commit.author.name or "",
            author_email=commit.author.email or "",
            authored_date=commit.authored_date,
            author_tz_offset=commit.author_tz_offset,
            committer_name=commit.committer.name or "",
            committer_email=commit.committer.email or "",
            committed_date=commit.committed_date,
            committer_tz_offset=commit.committer_tz_offset,
        )

    @property
    def short_id(self) -> str:
        return self.hexsha[:7]

    @property
    def summary(self) -> str:
        lines = self.message.strip().splitlines()
        return lines[0] if lines else ""

    @property
    def author(self) -> str:
        """Author signature as ``Name <email>``."""
        return f"{self.author_name} <{self.author_email}>"

    @property
    def committer(self) -> str:
        return f"{self.committer_name} <{self.committer_email}>"


class FrontierEntry(BaseModel):
    """A commit waiting in (or just emitted from) the merge frontier.

    The mount path is the one under which ``node`` was reached and stays the
    same for every ancestor discovered from this entry.
    """

    record: CommitRecord
    node: RepositoryNode
    mount_path: str = ""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @property
    def hexsha(self) -> str:
        return self.record.hexsha

    @property
    def timestamp(self) -> int:
        return self.record.committed_date

    @property
    def repo(self) -> git.Repo:
        return self.node.repo
