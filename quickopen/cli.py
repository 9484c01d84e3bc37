"""Typer-based CLI for workspace quick open."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from . import __version__
from .cli_config import config_app
from .cli_tui import highlight, run_session
from .config_manager import load_settings
from .models import MatchResult
from .ranker import FILTER_MODES, QuickOpen, QuickOpenError

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="🔎 Quick open — fuzzy-find files in the workspace around a file.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"quickopen v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Log indexing and matching details."),
):
    """Quick open: resolve a workspace from a file and rank its files against a query."""
    _configure_logging(verbose)


def print_results(results: List[MatchResult]) -> None:
    for item in results:
        line = Text(f"{item.score:>5}  ")
        line.append_text(highlight(item))
        console.print(line, soft_wrap=True)


@app.command("root")
def show_root(
    file: Path = typer.Argument(..., exists=True, help="A file inside the workspace."),
):
    """Print the workspace root resolved from FILE."""
    settings = load_settings()
    qo = QuickOpen.from_settings(settings)
    typer.echo(str(qo.indexer.resolve_root(file)))


@app.command("files")
def list_files(
    file: Path = typer.Argument(..., exists=True, help="A file inside the workspace."),
    limit: int = typer.Option(0, "--limit", "-n", min=0, help="Maximum number of files (0 = all)."),
):
    """List candidate files of the workspace around FILE."""
    qo = QuickOpen.from_settings()
    qo.indexer.background = False
    snapshot = qo.open(file)

    if snapshot is None or not snapshot.files:
        typer.echo("No files found.")
        raise typer.Exit(code=0)

    files = snapshot.files[:limit] if limit else snapshot.files
    for path in files:
        typer.echo(path.relative_to(snapshot.root).as_posix())


@app.command("find")
def find(
    file: Path = typer.Argument(..., exists=True, help="A file inside the workspace."),
    query: str = typer.Argument(..., help="Fuzzy query, e.g. 'fzm' for fuzzy_match.py."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", min=0, help="Maximum number of results (0 = all)."),
    match_path: bool = typer.Option(False, "--path", "-p", help="Match against the relative path, not the file name."),
    exhaustive: bool = typer.Option(False, "--exhaustive", help="Backtrack over every alignment (slow, bounded)."),
    filter_mode: Optional[str] = typer.Option(None, "--filter", "-f", help="Score filter: running_mean, none, min_score."),
    as_json: bool = typer.Option(False, "--json", help="Emit one JSON object per result."),
):
    """Rank files of the workspace around FILE against QUERY.

    Example:
      qo find src/app.py 'cfgmgr'
      qo find . 'tst/rank' --path --limit 5
    """
    settings = load_settings()
    if match_path:
        settings.match.match_on = "path"
    if exhaustive:
        settings.match.exhaustive = True
    if filter_mode is not None:
        if filter_mode not in FILTER_MODES:
            raise typer.BadParameter(f"--filter must be one of: {', '.join(FILTER_MODES)}")
        settings.match.filter = filter_mode
    # results are needed right away
    settings.index.background = False

    qo = QuickOpen.from_settings(settings)
    if limit is not None:
        qo.limit = limit or None
    try:
        results = qo.find(file, query)
    except QuickOpenError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)

    if as_json:
        for item in results:
            typer.echo(json.dumps(item.to_dict()))
        return

    if not results:
        typer.echo("No matches found.")
        raise typer.Exit(code=0)

    print_results(results)


@app.command("session")
def session(
    file: Path = typer.Argument(..., exists=True, help="A file inside the workspace."),
    limit: int = typer.Option(15, "--limit", "-n", min=1, help="Results shown per query."),
):
    """Interactive quick open: index once, then query repeatedly."""
    run_session(file, limit=limit)


if __name__ == "__main__":
    app()
