"""intellidiff CLI: Typer application with compare, diff, parse, and init commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from intellidiff import __version__

app = typer.Typer(
    name="intellidiff",
    help="Structured diffs between two git references.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)


def _resolve_repo_root() -> Path:
    """Find the git repo root, exit 2 on failure."""
    from intellidiff.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root()
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


def _load(repo_root: Path, config: Optional[str], verbose: bool, debug: bool):
    """Load config and set up logging, exit 2 on config errors."""
    from intellidiff.config.loader import ConfigError, load_config
    from intellidiff.log import configure_logging

    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    level = "debug" if debug else "info" if verbose else cfg.log.level
    configure_logging(level)
    return cfg


def _comparator(repo_root: Path, cfg):
    from intellidiff.git.adapter import GitRunner
    from intellidiff.git.comparator import ReferenceComparator

    runner = GitRunner(
        repo_root,
        timeout=cfg.git.timeout,
        find_renames=cfg.git.find_renames,
    )
    return ReferenceComparator(runner, context_lines=cfg.git.context_lines)


def _check_format(format: Optional[str], cfg) -> None:
    if format:
        if format not in ("terminal", "json"):
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]


# ── compare ───────────────────────────────────────────────────────────────────


@app.command()
def compare(
    base: str = typer.Argument(..., help="Base reference (commit, branch, tag, STAGED)"),
    target: str = typer.Argument("WORKTREE", help="Reference to compare against the base"),
    path: Optional[List[str]] = typer.Option(None, "--path", "-p", help="Limit to these paths"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .intellidiff.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
) -> None:
    """List files changed between two references, with status and line counts."""
    from intellidiff.git.adapter import GitError
    from intellidiff.git.models import GitReference
    from intellidiff.output import json_report, terminal

    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config, verbose, debug)
    _check_format(format, cfg)

    base_ref, target_ref = GitReference.parse(base), GitReference.parse(target)
    try:
        files = _comparator(repo_root, cfg).compare(base_ref, target_ref, path or None)
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if cfg.output.format == "json":
        print(json_report.render(files, include_hunks=False))
    else:
        terminal.render(
            files,
            title=f"{base_ref.name} → {target_ref.name}",
            show_summary=cfg.output.show_summary,
        )


# ── diff ──────────────────────────────────────────────────────────────────────


@app.command()
def diff(
    base: str = typer.Argument(..., help="Base reference (commit, branch, tag, STAGED)"),
    target: str = typer.Argument("WORKTREE", help="Reference to compare against the base"),
    path: Optional[List[str]] = typer.Option(None, "--path", "-p", help="Limit to these paths"),
    full: bool = typer.Option(False, "--full", help="Include whole-file context and file contents (single --path)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .intellidiff.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
) -> None:
    """Emit the parsed diff (files, hunks, changes) between two references as JSON."""
    from intellidiff.git.adapter import GitError
    from intellidiff.git.comparator import ComparisonError
    from intellidiff.git.models import GitReference
    from intellidiff.output import json_report

    repo_root = _resolve_repo_root()
    cfg = _load(repo_root, config, verbose, debug)

    if full and (not path or len(path) != 1):
        console.print("[bold red]--full needs exactly one --path[/bold red]")
        raise typer.Exit(code=2)

    base_ref, target_ref = GitReference.parse(base), GitReference.parse(target)
    comparator = _comparator(repo_root, cfg)
    try:
        if full:
            files = [comparator.file_diff(base_ref, target_ref, path[0])]
        else:
            files = comparator.diff(base_ref, target_ref, path or None)
    except ComparisonError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    print(json_report.render(files))


# ── parse ─────────────────────────────────────────────────────────────────────


@app.command()
def parse(
    diff_file: Optional[str] = typer.Argument(None, help="Diff file to parse (default: stdin)"),
    debug: bool = typer.Option(False, "--debug", help="Debug logging"),
) -> None:
    """Parse unified diff text from a file or stdin and print the model as JSON."""
    from intellidiff.git.diff_parser import parse_diff
    from intellidiff.log import configure_logging
    from intellidiff.output import json_report

    configure_logging("debug" if debug else "warning")

    if diff_file is None or diff_file == "-":
        text = sys.stdin.read()
    else:
        source = Path(diff_file)
        if not source.is_file():
            console.print(f"[bold red]File not found:[/bold red] {diff_file}")
            raise typer.Exit(code=2)
        text = source.read_text(encoding="utf-8", errors="replace")

    print(json_report.render(parse_diff(text)))


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .intellidiff.toml in the repo root."""
    from intellidiff.config.defaults import DEFAULT_TOML
    from intellidiff.config.loader import CONFIG_FILENAME

    repo_root = _resolve_repo_root()
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"intellidiff {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """intellidiff: structured diffs between two git references."""
