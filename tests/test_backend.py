"""Tests for the GitPython backend primitives."""

from pathlib import Path

import pytest

from git_sub.core import backend
from git_sub.core.errors import NotARepository, SubmoduleUnavailable, UnknownRevision
from git_sub.models.delta import DeltaStatus
from git_sub.models.repository import RepositoryState
from git_sub.models.status import StatusFlag

from helpers import commit, commit_file, init_repo, run_git, write_file


class TestParsePorcelain:
    """Parsing of ``git status --porcelain=v1 -z`` records."""

    def test_index_and_worktree_codes(self):
        output = "A  added.txt\0 M changed.txt\0MD both.txt\0?? new.txt\0!! build/\0"
        entries = backend.parse_porcelain(output)
        assert [e.path for e in entries] == [
            "added.txt",
            "changed.txt",
            "both.txt",
            "new.txt",
            "build/",
        ]
        assert entries[0].status == StatusFlag.INDEX_NEW
        assert entries[1].status == StatusFlag.WT_MODIFIED
        assert entries[2].status == StatusFlag.INDEX_MODIFIED | StatusFlag.WT_DELETED
        assert entries[3].status == StatusFlag.WT_NEW
        assert entries[4].status == StatusFlag.IGNORED

    def test_rename_consumes_old_path(self):
        entries = backend.parse_porcelain("R  new name.c\0old name.c\0 M other.c\0")
        assert len(entries) == 2
        assert entries[0].path == "new name.c"
        assert entries[0].old_path == "old name.c"
        assert entries[0].status == StatusFlag.INDEX_RENAMED
        assert entries[1].old_path is None

    def test_copy_is_added_without_old_path(self):
        entries = backend.parse_porcelain("C  copy.c\0orig.c\0")
        assert entries[0].status == StatusFlag.INDEX_NEW
        assert entries[0].old_path is None

    def test_unmerged_is_conflicted(self):
        entries = backend.parse_porcelain("UU clash.c\0")
        assert entries[0].status == StatusFlag.CONFLICTED

    def test_empty_output(self):
        assert backend.parse_porcelain("") == []


def test_open_repository_rejects_plain_directory(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    with pytest.raises(NotARepository):
        backend.open_repository(plain, search_parent_directories=False)


def test_resolve_unknown_revision(tmp_path):
    repo = init_repo(tmp_path / "repo")
    commit_file(repo, "a.txt", "a\n", "First", 0)
    with pytest.raises(UnknownRevision):
        backend.resolve_revision(repo, "no-such-branch")
    with pytest.raises(UnknownRevision):
        backend.resolve_revision(repo, "1" * 40)


def test_head_commit_of_unborn_repository(tmp_path):
    repo = init_repo(tmp_path / "empty")
    assert backend.head_commit(repo) is None


def test_tree_diff_detects_rename(tmp_path):
    repo = init_repo(tmp_path / "repo")
    content = "".join(f"line {i}\n" for i in range(20))
    first = commit_file(repo, "old.txt", content, "First", 0)
    run_git(repo, "mv", "old.txt", "new.txt")
    second = commit(repo, "Rename", 10)
    deltas = backend.tree_diff(repo, first, second)
    assert len(deltas) == 1
    assert deltas[0].status == DeltaStatus.RENAMED
    assert deltas[0].old_path == "old.txt"
    assert deltas[0].new_path == "new.txt"


def test_tree_diff_against_empty_tree(tmp_path):
    repo = init_repo(tmp_path / "repo")
    write_file(repo, "dir/a.txt", "a\n")
    repo.index.add(["dir/a.txt"])
    first = commit_file(repo, "b.txt", "b\n", "First", 0)
    deltas = backend.tree_diff(repo, None, first)
    assert {d.new_path for d in deltas} == {"b.txt", "dir/a.txt"}
    assert all(d.status == DeltaStatus.ADDED for d in deltas)


def test_status_entries_split_index_and_worktree(tmp_path):
    repo = init_repo(tmp_path / "repo")
    commit_file(repo, "tracked.txt", "one\n", "First", 0)
    write_file(repo, "staged.txt", "new\n")
    repo.index.add(["staged.txt"])
    write_file(repo, "tracked.txt", "two\n")
    write_file(repo, "untracked.txt", "?\n")

    entries = {e.path: e for e in backend.status_entries(repo)}
    assert entries["staged.txt"].status == StatusFlag.INDEX_NEW
    assert entries["tracked.txt"].status == StatusFlag.WT_MODIFIED
    assert entries["untracked.txt"].status == StatusFlag.WT_NEW


def test_status_entries_pathspec_restriction(tmp_path):
    repo = init_repo(tmp_path / "repo")
    commit_file(repo, "a/one.txt", "1\n", "First", 0)
    write_file(repo, "a/one.txt", "changed\n")
    write_file(repo, "b/two.txt", "new\n")
    entries = backend.status_entries(repo, pathspec=["a"])
    assert [e.path for e in entries] == ["a/one.txt"]


def test_repository_state_markers(tmp_path):
    repo = init_repo(tmp_path / "repo")
    commit_file(repo, "a.txt", "a\n", "First", 0)
    git_dir = Path(repo.git_dir)
    assert backend.repository_state(repo) == RepositoryState.CLEAN

    (git_dir / "MERGE_HEAD").write_text(repo.head.commit.hexsha + "\n")
    assert backend.repository_state(repo) == RepositoryState.MERGE
    (git_dir / "MERGE_HEAD").unlink()

    (git_dir / "rebase-merge").mkdir()
    (git_dir / "rebase-merge" / "interactive").write_text("")
    assert backend.repository_state(repo) == RepositoryState.REBASE_INTERACTIVE


def test_read_blob_and_workdir_file(tmp_path):
    repo = init_repo(tmp_path / "repo")
    commit_file(repo, "a.txt", "hello\n", "First", 0)
    blob_id = backend.index_blob_id(repo, "a.txt")
    assert backend.read_blob(repo, blob_id) == b"hello\n"
    write_file(repo, "a.txt", "changed\n")
    assert backend.read_workdir_file(repo, "a.txt") == b"changed\n"
    assert backend.index_blob_id(repo, "missing.txt") is None


def test_open_submodule_returns_pin(forest):
    root, child = forest
    opened, pinned = backend.open_submodule(root, "libs/foo")
    try:
        assert Path(opened.working_tree_dir).resolve() == Path(child.working_tree_dir).resolve()
        assert pinned == child.head.commit.hexsha
    finally:
        opened.close()


def test_open_uninitialized_submodule_fails(forest, tmp_path):
    root, _ = forest
    clone_dir = tmp_path / "clone"
    run_git(root, "clone", "--quiet", root.working_tree_dir, str(clone_dir))
    clone = backend.open_repository(clone_dir)
    try:
        with pytest.raises(SubmoduleUnavailable):
            backend.open_submodule(clone, "libs/foo")
    finally:
        clone.close()


def test_submodule_registry_is_reused(forest, monkeypatch):
    root, child = forest
    registry = backend.submodule_registry(root)
    assert list(registry) == ["libs/foo"]

    def fail(_repo):
        raise AssertionError("registry rebuilt")

    monkeypatch.setattr(backend, "submodule_registry", fail)
    opened, pinned = backend.open_submodule(root, "libs/foo", registry)
    try:
        assert pinned == child.head.commit.hexsha
    finally:
        opened.close()


def test_submodule_registry_of_unborn_repository(tmp_path):
    repo = init_repo(tmp_path / "empty")
    assert backend.submodule_registry(repo) == {}
    repo.close()
