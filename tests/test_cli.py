"""End-to-end tests of the command line interface."""

import pytest
from click.testing import CliRunner

from git_sub.cli.main import main

from helpers import commit_file, run_git, write_file


@pytest.fixture
def runner():
    return CliRunner()


def invoke(runner, root, *args):
    return runner.invoke(main, ["-C", root.working_tree_dir, *args])


def test_log_oneline(runner, forest):
    root, child = forest
    result = invoke(runner, root, "log", "-n", "2")
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith(root.head.commit.hexsha[:7] + " - Add foo submodule")
    assert lines[1].startswith(child.head.commit.hexsha[:7] + " - Add foo header")
    assert lines[1].endswith("(./libs/foo)")


def test_log_full_with_file_list(runner, forest):
    root, child = forest
    result = invoke(runner, root, "log", "--full", "--list", "-s", "1", "-n", "1")
    assert result.exit_code == 0, result.output
    assert result.output.startswith(f"{child.head.commit.hexsha} - libs/foo\n")
    assert "Author:     Test User <test@example.com>" in result.output
    assert "    Add foo header" in result.output
    assert "  A foo.h" in result.output


def test_log_patch_shows_added_lines(runner, forest):
    root, _ = forest
    result = invoke(runner, root, "log", "-p", "-n", "1", "src")
    assert result.exit_code == 0, result.output
    assert "+++ b/src/main.c" in result.output
    assert "+int main;" in result.output


def test_log_pathspec(runner, forest):
    root, _ = forest
    result = invoke(runner, root, "log", "libs/foo/foo.h")
    assert result.exit_code == 0, result.output
    assert "Add foo header" in result.output
    assert len(result.output.splitlines()) == 1


def test_log_invalid_pattern(runner, forest):
    root, _ = forest
    result = invoke(runner, root, "log", "--grep", "(")
    assert result.exit_code == 1
    assert "Invalid message pattern" in result.output


def test_status_clean(runner, forest):
    root, _ = forest
    result = invoke(runner, root, "status")
    assert result.exit_code == 0, result.output
    assert result.output == ""


def test_status_head_drift(runner, forest):
    root, child = forest
    pinned = child.head.commit.hexsha
    new_head = commit_file(child, "later.c", "int later;\n", "Move ahead", 200)

    result = invoke(runner, root, "status")
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0] == f"Repo: ./libs/foo @ {new_head[:7]}"
    assert lines[1:4] == ["Repo head changed:", f" From {pinned}", f" To   {new_head}"]
    assert "0 changes staged" in lines


def test_status_entries_and_patch(runner, forest):
    root, _ = forest
    write_file(root, "README.md", "# Changed\n")
    result = invoke(runner, root, "status", "-p")
    assert result.exit_code == 0, result.output
    assert "1 changes in working tree" in result.output
    assert "  M README.md" in result.output
    assert "-# Root" in result.output
    assert "+# Changed" in result.output


def test_status_short(runner, forest):
    root, _ = forest
    write_file(root, "README.md", "# Changed\n")
    result = invoke(runner, root, "status", "--short")
    assert result.exit_code == 0, result.output
    assert "README.md" not in result.output
    assert "1 changes in working tree" in result.output


def test_status_exclusive_flags(runner, forest):
    root, _ = forest
    result = invoke(runner, root, "status", "--staged", "--work-tree")
    assert result.exit_code == 2


def test_ls_files(runner, forest):
    root, child = forest
    result = invoke(runner, root, "ls-files", "libs")
    assert result.exit_code == 0, result.output
    foo_c = (child.head.commit.tree / "foo.c").hexsha
    assert result.output.splitlines() == [
        f"{foo_c} libs/foo/foo.c",
        f"{(child.head.commit.tree / 'foo.h').hexsha} libs/foo/foo.h",
    ]


def test_not_a_repository(runner, tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    result = runner.invoke(main, ["-C", str(plain), "status"])
    assert result.exit_code == 1
    assert "Not a git repository" in result.output


def test_status_aborts_on_unavailable_submodule(runner, forest, monkeypatch):
    monkeypatch.setenv("TERM", "xterm")
    root, _ = forest
    run_git(root, "submodule", "deinit", "--force", "--quiet", "libs/foo")
    result = invoke(runner, root, "--force-color", "status")
    assert result.exit_code == 1
    assert "Error: Submodule 'libs/foo'" in result.output
    assert "\x1b[31m" in result.output
