"""CLI interface for ragsync.

Typer-based command-line interface with Rich output formatting.
"""

from __future__ import annotations

import contextlib
import logging
import signal
import threading
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

from ragsync import __version__
from ragsync.app import build_components, build_sources
from ragsync.chat import ChatHistory
from ragsync.exceptions import AuthorizationError, IndexNotReadyError, RagsyncError
from ragsync.project import ProjectManager
from ragsync.store import ChromaIndex

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ragsync.app import Components
    from ragsync.orchestrator import QueryOrchestrator

__all__ = ["app"]

app = typer.Typer(
    name="ragsync",
    help="Keep a vector index in sync with your documents and ask questions about them.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()
logger = logging.getLogger(__name__)


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv)"),
    ] = 0,
) -> None:
    """ragsync command-line interface."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _require_project() -> ProjectManager:
    root = ProjectManager.find_project_root()
    if root is None:
        console.print(
            "[yellow]No ragsync project found.[/yellow] Run [bold]ragsync init[/bold] first."
        )
        raise typer.Exit(code=1)
    return ProjectManager(root)


def _components(pm: ProjectManager) -> Components:
    try:
        return build_components(pm.load_config(), pm)
    except RagsyncError as e:
        console.print(f"[red]Failed to initialize:[/red] {e}")
        raise typer.Exit(code=1) from e


@contextlib.contextmanager
def _cancel_on_interrupt() -> Iterator[threading.Event]:
    """Turn Ctrl-C into a cooperative cancellation request."""
    cancel = threading.Event()

    def _handler(signum: int, frame: object) -> None:
        if cancel.is_set():
            raise KeyboardInterrupt
        console.print("\n[yellow]Cancelling after the current document...[/yellow]")
        cancel.set()

    try:
        previous = signal.signal(signal.SIGINT, _handler)
    except ValueError:
        # Not in the main thread; leave Ctrl-C alone.
        yield cancel
        return
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)


@app.command()
def version() -> None:
    """Show ragsync version."""
    console.print(f"ragsync {__version__}")


@app.command()
def init(
    sources: Annotated[
        list[str] | None,
        typer.Option("--source", "-s", help="Directory to ingest (repeatable)"),
    ] = None,
    name: Annotated[
        str,
        typer.Option("--name", "-n", help="Project name"),
    ] = "",
) -> None:
    """Initialize a new ragsync project in the current directory."""
    pm = ProjectManager()
    try:
        rag_dir = pm.init(name=name, sources=sources or [])
    except (RagsyncError, OSError) as e:
        console.print(f"[red]Failed to initialize project:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]Initialized ragsync project[/green] at {rag_dir}")
    console.print(f"  {pm.config_path}")

    config = pm.load_config()
    for source in config.sources:
        console.print(f"  source: [bold]{source.path}[/bold]")

    console.print("\nNext steps:")
    console.print("  ragsync ingest           Index the configured sources")
    console.print('  ragsync ask "question"   Ask a question about them')


@app.command()
def status() -> None:
    """Show project status: sources, tracked documents, indexed chunks."""
    pm = _require_project()
    try:
        st = pm.status()
        config = st.config
        if config is None:
            raise RagsyncError(f"No configuration found at {pm.config_path}")
        chunk_count = ChromaIndex(
            persist_path=pm.index_path,
            collection_name=config.store.collection_name,
        ).count()
    except RagsyncError as e:
        console.print(f"[red]Failed to read project status:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[bold]ragsync project:[/bold] {config.project.name or st.root.name}")

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("metric", style="dim")
    table.add_column("value", style="bold")
    table.add_row("Sources", str(len(config.sources)))
    table.add_row("Documents", str(st.document_count))
    table.add_row("Chunks", str(chunk_count))
    table.add_row("Embedding", f"{config.embedding.provider}/{config.embedding.model}")
    table.add_row("LLM", f"{config.llm.provider}/{config.llm.model}")
    console.print(table)

    if not config.sources:
        console.print(
            "\n[dim]No sources configured. Run [bold]ragsync init --source <dir>[/bold].[/dim]"
        )


@app.command()
def ingest(
    workers: Annotated[
        int,
        typer.Option("--workers", "-w", help="Sources processed in parallel"),
    ] = 1,
) -> None:
    """Ingest all configured sources and remove documents that disappeared."""
    pm = _require_project()
    components = _components(pm)
    sources = build_sources(components.config, pm)

    if not sources:
        console.print("[yellow]No sources configured.[/yellow] Use ragsync init --source <dir>.")
        raise typer.Exit(code=1)

    with _cancel_on_interrupt() as cancel:
        try:
            report = components.pipeline.run(sources, cancel=cancel, max_workers=workers)
        except AuthorizationError as e:
            console.print(f"[red]Authorization failed:[/red] {e}")
            raise typer.Exit(code=1) from e
        except RagsyncError as e:
            console.print(f"[red]Ingestion failed:[/red] {e}")
            raise typer.Exit(code=1) from e

    table = Table(title="Ingestion")
    for column in ("Source", "Processed", "Unchanged", "Failed", "Deleted chunks"):
        table.add_column(column)
    for s in report.sources:
        table.add_row(
            s.prefix,
            str(s.processed),
            str(s.skipped),
            str(s.failed) if not s.error else f"[red]{s.error}[/red]",
            str(s.deleted_chunks),
        )
    console.print(table)

    if report.cancelled:
        console.print("[yellow]Cancelled; run again to finish.[/yellow]")
    if any(s.error for s in report.sources):
        raise typer.Exit(code=1)


def _orchestrator(components: Components) -> QueryOrchestrator:
    try:
        return components.orchestrator()
    except RagsyncError as e:
        console.print(f"[red]Failed to initialize the language model:[/red] {e}")
        raise typer.Exit(code=1) from e


def _answer(orchestrator: QueryOrchestrator, question: str, history: ChatHistory) -> bool:
    """Print the answer to *question*. Returns False if it could not be answered."""
    try:
        answer = orchestrator.ask(question, history)
    except IndexNotReadyError:
        console.print("[yellow]Nothing indexed yet.[/yellow] Run [bold]ragsync ingest[/bold] first.")
        return False
    except RagsyncError as e:
        console.print(f"[red]Failed to answer:[/red] {e}")
        return False
    console.print(answer)
    return True


@app.command()
def ask(
    question: Annotated[str, typer.Argument(help="Question to answer from the indexed documents")],
) -> None:
    """Answer a single question."""
    pm = _require_project()
    components = _components(pm)
    orchestrator = _orchestrator(components)
    if not _answer(orchestrator, question, ChatHistory(components.config.chat.history_size)):
        raise typer.Exit(code=1)


@app.command()
def chat() -> None:
    """Interactive question answering with a rolling chat history. Empty line exits."""
    pm = _require_project()
    components = _components(pm)
    orchestrator = _orchestrator(components)
    history = ChatHistory(components.config.chat.history_size)

    while True:
        try:
            question = console.input("[bold cyan]> [/bold cyan]").strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not question:
            break
        _answer(orchestrator, question, history)
