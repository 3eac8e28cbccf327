"""Rich terminal listing of changed files, grouped by status."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from intellidiff.git.models import DiffFile, FileStatus

_STATUS_STYLE = {
    FileStatus.ADDED: "bold green",
    FileStatus.MODIFIED: "bold yellow",
    FileStatus.DELETED: "bold red",
    FileStatus.RENAMED: "bold cyan",
    FileStatus.BINARY: "bold magenta",
}

_STATUS_ORDER = [
    FileStatus.ADDED,
    FileStatus.MODIFIED,
    FileStatus.RENAMED,
    FileStatus.DELETED,
    FileStatus.BINARY,
]


def group_by_status(files: Sequence[DiffFile]) -> Dict[FileStatus, List[DiffFile]]:
    """Bucket *files* by status, keeping input order within each bucket."""
    groups: Dict[FileStatus, List[DiffFile]] = {s: [] for s in _STATUS_ORDER}
    for f in files:
        groups[f.status].append(f)
    return {s: fs for s, fs in groups.items() if fs}


def _path_cell(diff_file: DiffFile) -> str:
    if diff_file.status == FileStatus.RENAMED and diff_file.old_path != diff_file.new_path:
        return f"{diff_file.old_path} → {diff_file.new_path}"
    return diff_file.path


def _counts_cell(diff_file: DiffFile) -> Text:
    if diff_file.is_binary:
        return Text("binary", style="dim")
    text = Text()
    text.append(f"+{diff_file.additions}", style="green")
    text.append(" ")
    text.append(f"-{diff_file.deletions}", style="red")
    return text


def render(
    files: Sequence[DiffFile],
    *,
    title: str = "Changed files",
    show_summary: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print *files* as a table grouped by status."""
    console = console or Console()

    if not files:
        console.print("[dim]No changes between the selected references.[/dim]")
        return

    table = Table(title=title, title_style="bold", border_style="dim")
    table.add_column("Status", justify="center", width=10)
    table.add_column("Path", style="magenta")
    table.add_column("Lines", justify="right")

    for status, group in group_by_status(files).items():
        for f in group:
            table.add_row(
                Text(status.value.upper(), style=_STATUS_STYLE[status]),
                _path_cell(f),
                _counts_cell(f),
            )

    console.print(table)

    if show_summary:
        console.print()
        console.print(f"[dim]Files changed:[/dim] {len(files)}")
        console.print(f"[dim]Additions:[/dim]     {sum(f.additions for f in files)}")
        console.print(f"[dim]Deletions:[/dim]     {sum(f.deletions for f in files)}")
