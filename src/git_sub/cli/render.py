"""Terminal output for git-sub, built on rich."""

import difflib
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from git import Repo
from rich.console import Console
from rich.text import Text

from git_sub.core import backend
from git_sub.core.config import ColorMode, Settings
from git_sub.models.commit import FrontierEntry
from git_sub.models.delta import Delta, DeltaStatus, ListedFile
from git_sub.models.options import LogDetail, LogOptions, StatusOptions
from git_sub.models.repository import RepositoryState
from git_sub.models.status import RepoStatusReport, StatusEntry, StatusFlag

DATE_FORMAT = "%a %b %d %H:%M:%S %Y %z"

_DELTA_LABELS = {
    DeltaStatus.ADDED: ("A", "green"),
    DeltaStatus.COPIED: ("C", "green"),
    DeltaStatus.DELETED: ("D", "red"),
    DeltaStatus.MODIFIED: ("M", "red"),
    DeltaStatus.RENAMED: ("R", "green"),
    DeltaStatus.TYPE_CHANGED: ("T", "green"),
    DeltaStatus.UNMERGED: ("U", "red"),
    DeltaStatus.UNKNOWN: ("X", "red"),
}

# Checked in order; staged labels come first.
_STATUS_LABELS = (
    (StatusFlag.INDEX_NEW, "A ", "green"),
    (StatusFlag.INDEX_MODIFIED, "M ", "green"),
    (StatusFlag.INDEX_DELETED, "D ", "green"),
    (StatusFlag.INDEX_RENAMED, "R ", "green"),
    (StatusFlag.INDEX_TYPECHANGE, "T ", "green"),
    (StatusFlag.WT_NEW, "??", "red"),
    (StatusFlag.WT_MODIFIED, " M", "red"),
    (StatusFlag.WT_DELETED, " D", "red"),
    (StatusFlag.WT_TYPECHANGE, " T", "red"),
    (StatusFlag.WT_RENAMED, " R", "red"),
    (StatusFlag.IGNORED, "!!", "red"),
    (StatusFlag.CONFLICTED, "UU", "red"),
)


def make_console(settings: Settings, stderr: bool = False) -> Console:
    """Console honouring the resolved color mode."""
    if settings.color == ColorMode.ALWAYS:
        return Console(stderr=stderr, force_terminal=True, highlight=False)
    if settings.color == ColorMode.NEVER:
        return Console(stderr=stderr, color_system=None, highlight=False)
    return Console(stderr=stderr, highlight=False)


def emit(console: Console, *parts) -> None:
    """Print one line without wrapping or markup interpretation."""
    console.print(Text.assemble(*parts), soft_wrap=True)


def format_duration(seconds: float) -> str:
    """Rough age such as ``3 days ago``."""
    seconds = int(seconds)
    days = seconds // 86400
    if days > 30:
        return f"{days // 30} months ago"
    if days > 0:
        return f"{days} days ago"
    if seconds >= 3600:
        return f"{seconds // 3600} hours ago"
    if seconds >= 60:
        return f"{seconds // 60} mins ago"
    if seconds > 0:
        return f"{seconds} secs ago"
    return "just now"


def display_path(root_dir: Path, mount_path: str, dotted: bool = True) -> str:
    """The root is shown by its full path, submodules relative to it."""
    if not mount_path:
        return str(root_dir)
    return f"./{mount_path}" if dotted else mount_path


def _local_time(timestamp: int) -> datetime:
    return datetime.fromtimestamp(timestamp).astimezone()


# -- log ---------------------------------------------------------------------


def print_commit(
    console: Console,
    entry: FrontierEntry,
    root_dir: Path,
    now: datetime,
    options: LogOptions,
) -> None:
    record = entry.record
    committed = _local_time(record.committed_date)
    if options.detail == LogDetail.FULL:
        emit(
            console,
            (record.hexsha, "yellow"),
            " - ",
            (display_path(root_dir, entry.mount_path, dotted=False), "bright_blue"),
        )
        emit(console, f"Author:     {record.author}")
        emit(console, f"AuthorDate: {_local_time(record.authored_date).strftime(DATE_FORMAT)}")
        emit(console, f"Commit:     {record.committer}")
        emit(console, f"CommitDate: {committed.strftime(DATE_FORMAT)}")
        emit(console, "")
        emit(console, "    " + record.message.replace("\n", "\n    "))
    else:
        age = format_duration((now - committed).total_seconds())
        emit(
            console,
            (record.short_id, "red"),
            f" - {record.summary:50} (",
            (age, "green"),
            ") <",
            (record.author_name or "!!NO NAME!!", "bright_blue"),
            f"> ({display_path(root_dir, entry.mount_path)})",
        )

    if options.list_files or options.patch:
        first_parent = record.parents[0] if record.parents else None
        for delta in backend.tree_diff(entry.repo, first_parent, record.hexsha):
            if options.list_files:
                print_delta(console, delta)
            if options.patch:
                print_delta_patch(console, entry.repo, delta)


def print_delta(console: Console, delta: Delta) -> None:
    label, style = _DELTA_LABELS[delta.status]
    if delta.is_rename:
        emit(console, "  ", (label, style), f" {delta.old_path} -> {delta.new_path}")
    else:
        emit(console, "  ", (label, style), f" {delta.new_path}")


def print_delta_patch(console: Console, repo: Repo, delta: Delta) -> None:
    if delta.is_gitlink:
        print_gitlink_patch(console, delta.old_path, delta.new_path, delta.old_id, delta.new_id)
        return
    old = None if delta.status == DeltaStatus.ADDED else backend.read_blob(repo, delta.old_id)
    new = None if delta.status == DeltaStatus.DELETED else backend.read_blob(repo, delta.new_id)
    print_patch(console, old, new, delta.old_path, delta.new_path)


def print_gitlink_patch(
    console: Console, old_path: str, new_path: str, old_id: str, new_id: str
) -> None:
    emit(console, f"diff --git a/{old_path} b/{new_path}")
    emit(console, f"index {old_id[:7]}..{new_id[:7]} 160000")
    emit(console, f"--- a/{old_path}")
    emit(console, f"+++ b/{new_path}")
    emit(console, ("@@ -1 +1 @@", "cyan"))
    emit(console, (f"-Subproject commit {old_id}", "red"))
    emit(console, (f"+Subproject commit {new_id}", "green"))


# -- patches -----------------------------------------------------------------


def patch_lines(
    old: Optional[bytes], new: Optional[bytes], old_path: str, new_path: str
) -> List[str]:
    """Unified diff of two buffers, git style headers included.

    A side given as None does not exist and is shown as /dev/null.
    """
    lines = [f"diff --git a/{old_path} b/{new_path}"]
    old_name = f"a/{old_path}" if old is not None else "/dev/null"
    new_name = f"b/{new_path}" if new is not None else "/dev/null"
    old = old or b""
    new = new or b""
    if b"\0" in old or b"\0" in new:
        lines.append(f"Binary files {old_name} and {new_name} differ")
        return lines
    old_text = old.decode("utf-8", errors="replace").splitlines()
    new_text = new.decode("utf-8", errors="replace").splitlines()
    lines.extend(
        difflib.unified_diff(old_text, new_text, fromfile=old_name, tofile=new_name, lineterm="")
    )
    return lines


def _patch_style(line: str) -> Optional[str]:
    if line.startswith(("---", "+++", "diff --git", "Binary files")):
        return "bold"
    if line.startswith("@@"):
        return "cyan"
    if line.startswith("+"):
        return "green"
    if line.startswith("-"):
        return "red"
    return None


def print_patch(
    console: Console,
    old: Optional[bytes],
    new: Optional[bytes],
    old_path: str,
    new_path: str,
) -> None:
    for line in patch_lines(old, new, old_path, new_path):
        style = _patch_style(line)
        emit(console, (line, style) if style else line)


def _blob(repo: Repo, blob_id: Optional[str]) -> Optional[bytes]:
    return backend.read_blob(repo, blob_id) if blob_id else None


def status_patch_sides(
    repo: Repo, entry: StatusEntry
) -> Tuple[Optional[bytes], Optional[bytes], str]:
    """Old and new content of a status entry (None if absent), and the old path.

    Staged entries compare HEAD with the index; unstaged ones compare the
    index with the working directory.
    """
    status = entry.status
    old_path = entry.old_path or entry.path
    if entry.is_staged:
        old = None if status & StatusFlag.INDEX_NEW else _blob(
            repo, backend.head_tree_entry_id(repo, old_path)
        )
        new = None if status & StatusFlag.INDEX_DELETED else _blob(
            repo, backend.index_blob_id(repo, entry.path)
        )
        return old, new, old_path
    if status & (StatusFlag.WT_NEW | StatusFlag.IGNORED):
        return None, backend.read_workdir_file(repo, entry.path), old_path
    old = _blob(repo, backend.index_blob_id(repo, old_path))
    new = None if status & StatusFlag.WT_DELETED else backend.read_workdir_file(repo, entry.path)
    return old, new, old_path


def print_status_patch(console: Console, repo: Repo, entry: StatusEntry) -> None:
    if entry.path.endswith("/") or entry.status & StatusFlag.CONFLICTED:
        return
    old, new, old_path = status_patch_sides(repo, entry)
    print_patch(console, old, new, old_path, entry.path)


# -- status ------------------------------------------------------------------


def status_label(status: StatusFlag) -> Tuple[str, str]:
    for flag, label, style in _STATUS_LABELS:
        if status & flag:
            return label, style
    return "??", "red"


def print_status_entries(
    console: Console, repo: Repo, entries: Iterable[StatusEntry], patch: bool
) -> None:
    for entry in entries:
        label, style = status_label(entry.status)
        if entry.old_path:
            emit(console, " ", (label, style), f" {entry.old_path} -> {entry.path}")
        else:
            emit(console, " ", (label, style), f" {entry.path}")
        if patch:
            print_status_patch(console, repo, entry)


def print_status_report(
    console: Console, report: RepoStatusReport, root_dir: Path, options: StatusOptions
) -> None:
    head = report.head[:7] if report.head else "(unborn)"
    parts = [
        (f"Repo: {display_path(root_dir, report.mount_path)}", "bright_blue"),
        " @ ",
        (head, "green"),
    ]
    if report.state != RepositoryState.CLEAN:
        parts.extend([" | ", (f"State: {report.state.value}", "magenta")])
    emit(console, *parts)

    if report.head_drift:
        emit(console, "Repo head changed:")
        emit(console, f" From {report.pinned}")
        emit(console, f" To   {report.head or '(unborn)'}")

    emit(console, f"{len(report.index_entries)} changes staged")
    emit(console, f"{len(report.worktree_entries)} changes in working tree")
    if options.short:
        return
    if options.wants_index:
        print_status_entries(console, report.repo, report.index_entries, options.patch)
    if options.wants_worktree:
        print_status_entries(console, report.repo, report.worktree_entries, options.patch)


# -- ls-files ----------------------------------------------------------------


def print_listed_file(console: Console, listed: ListedFile) -> None:
    emit(console, f"{listed.blob_id} {listed.path}")
