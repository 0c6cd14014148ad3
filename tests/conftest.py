"""Shared fixtures: an isolated git environment and a two-repository forest."""

import pytest

from helpers import add_submodule, commit, commit_file, init_repo, init_submodules


@pytest.fixture(autouse=True)
def isolated_git(tmp_path_factory, monkeypatch):
    """Keep user and system git configuration out of the tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("CLICOLOR_FORCE", raising=False)


@pytest.fixture
def forest(tmp_path):
    """Root repository with one submodule mounted at ``libs/foo``.

    History, newest first::

        +140 root  Add foo submodule
        +130 foo   Add foo header
        +120 root  Add main
        +110 foo   Add foo source
        +100 root  Initial commit
    """
    sub_src = init_repo(tmp_path / "foo_src")
    commit_file(sub_src, "foo.c", "int foo;\n", "Add foo source", 110)
    commit_file(sub_src, "foo.h", "extern int foo;\n", "Add foo header", 130)

    root = init_repo(tmp_path / "root")
    commit_file(root, "README.md", "# Root\n", "Initial commit", 100)
    commit_file(root, "src/main.c", "int main;\n", "Add main", 120)
    child = add_submodule(root, sub_src, "libs/foo")
    commit(root, "Add foo submodule", 140)

    yield root, child

    child.close()
    root.close()
    sub_src.close()


@pytest.fixture
def nested_forest(tmp_path):
    """root -> libs/foo -> vendor/bar, all checked out."""
    bar = init_repo(tmp_path / "bar_src")
    commit_file(bar, "bar.c", "int bar;\n", "Add bar", 10)

    foo = init_repo(tmp_path / "foo_src")
    commit_file(foo, "foo.c", "int foo;\n", "Add foo", 20)
    add_submodule(foo, bar, "vendor/bar").close()
    commit(foo, "Add bar submodule", 30)

    root = init_repo(tmp_path / "root")
    commit_file(root, "README.md", "# Root\n", "Initial commit", 40)
    add_submodule(root, foo, "libs/foo").close()
    commit(root, "Add foo submodule", 50)
    init_submodules(root)

    yield root, foo, bar

    for repo in (root, foo, bar):
        repo.close()
