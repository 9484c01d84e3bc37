"""Interactive quick-open session."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from .models import MatchResult
from .ranker import QuickOpen

console = Console()

HELP = (
    "Type a query to rank files, [cyan]:open <file>[/cyan] to switch workspace,\n"
    "[cyan]:root[/cyan] to show the root, or an empty line to quit."
)


def highlight(result: MatchResult) -> Text:
    """Render the result path with its match window emphasised."""
    text = Text(result.path)
    offset = 0
    if result.matched_on == "name":
        offset = len(result.path) - len(result.matched_text)
    text.stylize("dim", 0, offset)
    text.stylize("bold yellow", offset + result.window.start, offset + result.window.end)
    return text


def _results_table(qo: QuickOpen, query: str, limit: int) -> Table:
    table = Table(show_header=True, box=None, padding=(0, 2), title=f"🔎 {query}", title_style="bold cyan")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Path")

    for item in qo.query(query, limit=limit):
        table.add_row(str(item.score), highlight(item))
    return table


def run_session(starting_file: Path, limit: int = 15) -> None:
    """Index the workspace of *starting_file* once and answer queries until EOF."""
    qo = QuickOpen.from_settings()
    snapshot = qo.open(starting_file)

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]🔎 Quick open[/bold cyan]\n[dim]{qo.root}[/dim]\n{HELP}",
            border_style="cyan",
        )
    )
    if snapshot is None:
        console.print("[dim]Indexing in the background...[/dim]", soft_wrap=True)
    else:
        console.print(f"[dim]{len(snapshot)} files indexed[/dim]")

    try:
        while True:
            query = Prompt.ask("\n[bold]Query[/bold]", default="", show_default=False).strip()
            if not query:
                break

            if query == ":root":
                console.print(str(qo.root), soft_wrap=True, highlight=False)
                continue

            if query.startswith(":open"):
                target = Path(query[len(":open"):].strip() or ".")
                if not target.exists():
                    console.print(f"[red]✗[/red] Path not found: {target}")
                    continue
                previous = qo.root
                qo.open(target)
                snapshot = qo.indexer.snapshot
                if qo.indexer.indexing:
                    console.print(f"[dim]Indexing {qo.indexer.resolve_root(target)} in the background...[/dim]", soft_wrap=True)
                elif qo.root != previous and snapshot is not None:
                    console.print(f"[green]✓[/green] Re-indexed {qo.root} ({len(snapshot)} files)", soft_wrap=True)
                else:
                    console.print(f"[dim]Same workspace: {qo.root}[/dim]")
                continue

            table = _results_table(qo, query, limit)
            if table.row_count == 0:
                console.print("[yellow]No matches.[/yellow]")
            else:
                console.print(table)
    except (KeyboardInterrupt, EOFError):
        console.print()
    finally:
        qo.close()
        console.print("[cyan]Goodbye![/cyan]")
