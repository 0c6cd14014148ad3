"""Builders for real git repositories used across the test suite."""

from pathlib import Path
from typing import Optional

from git import Actor, Repo

BASE_TIME = 1_600_000_000


def init_repo(path: Path) -> Repo:
    path.mkdir(parents=True, exist_ok=True)
    repo = Repo.init(path)
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
    return repo


def commit(
    repo: Repo,
    message: str,
    offset: int,
    author: Optional[Actor] = None,
    parents=None,
    head: bool = True,
) -> str:
    """Commit the current index at ``BASE_TIME + offset``."""
    date = f"{BASE_TIME + offset} +0000"
    kwargs = {}
    if author is not None:
        kwargs["author"] = author
    if parents is not None:
        kwargs["parent_commits"] = parents
    return repo.index.commit(
        message, author_date=date, commit_date=date, head=head, **kwargs
    ).hexsha


def write_file(repo: Repo, rel_path: str, content: str) -> Path:
    path = Path(repo.working_tree_dir) / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def commit_file(
    repo: Repo,
    rel_path: str,
    content: str,
    message: str,
    offset: int,
    author: Optional[Actor] = None,
) -> str:
    write_file(repo, rel_path, content)
    repo.index.add([rel_path])
    return commit(repo, message, offset, author=author)


def run_git(repo: Repo, *args: str) -> str:
    """Run git in ``repo`` with local file transport allowed for submodules."""
    return repo.git.execute(["git", "-c", "protocol.file.allow=always", *args])


def add_submodule(parent: Repo, source: Repo, path: str) -> Repo:
    """Register ``source`` as a submodule of ``parent`` at ``path`` (staged only)."""
    run_git(parent, "submodule", "add", "--quiet", source.working_tree_dir, path)
    child = Repo(Path(parent.working_tree_dir) / path)
    with child.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
    return child


def init_submodules(repo: Repo) -> None:
    run_git(repo, "submodule", "update", "--init", "--recursive", "--quiet")


def open_checkout(parent: Repo, path: str) -> Repo:
    child = Repo(Path(parent.working_tree_dir) / path)
    with child.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
    return child
