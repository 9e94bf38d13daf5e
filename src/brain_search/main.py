import asyncio
import logging
from typing import Annotated

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from typer import Argument, Exit, Option, Typer

from .config import SearchTuning, resolve_db_path
from .embeddings import EmbeddingGateway, build_default_gateway
from .errors import StoreUnavailableError
from .indexing import EnrichmentPipeline
from .search import ContentSearchEngine, ScoredResult
from .storage import ContentItem, DuckDBItemStore

app = Typer(help="Hybrid semantic and lexical search over a personal collection.")
console = Console()

OwnerOption = Annotated[
    str, Option("--owner", "-o", help="Owner whose collection is searched.")
]
LimitOption = Annotated[int, Option("--limit", "-n", help="Maximum number of results.")]
DbPathOption = Annotated[
    str | None,
    Option("--db-path", help="DuckDB file (defaults to BRAIN_SEARCH_DB_PATH)."),
]


@app.callback()
def configure(
    verbose: Annotated[
        bool, Option("--verbose", "-v", help="Show debug logging.")
    ] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _open_store(db_path: str | None) -> DuckDBItemStore:
    try:
        return DuckDBItemStore(resolve_db_path(db_path))
    except StoreUnavailableError as exc:
        console.print(f"[bold red]{exc}[/]")
        raise Exit(code=1)


def _build_gateway() -> EmbeddingGateway:
    try:
        return build_default_gateway()
    except ValueError as exc:
        console.print(f"[bold red]Invalid configuration: {exc}[/]")
        raise Exit(code=1)


def _build_engine(store: DuckDBItemStore) -> ContentSearchEngine:
    gateway = _build_gateway()
    try:
        tuning = SearchTuning.from_env()
    except ValueError as exc:
        console.print(f"[bold red]Invalid configuration: {exc}[/]")
        raise Exit(code=1)
    return ContentSearchEngine(store, gateway, tuning=tuning)


def _print_scored(results: list[ScoredResult], title: str) -> None:
    if not results:
        console.print("[bold yellow]No matching items.[/]")
        return
    table = Table(title=title, title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Via")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Id", style="dim")
    for rank, result in enumerate(results, start=1):
        table.add_row(
            str(rank),
            f"{result.score:.3f}",
            result.matched_by,
            result.item.type.value,
            result.item.title or result.item.link or "(untitled)",
            result.item.id,
        )
    console.print(table)


def _print_items(items: list[ContentItem], title: str) -> None:
    if not items:
        console.print("[bold yellow]No matching items.[/]")
        return
    table = Table(title=title, title_justify="left")
    table.add_column("Created")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Tags")
    table.add_column("Id", style="dim")
    for item in items:
        table.add_row(
            item.created_at.strftime("%Y-%m-%d"),
            item.type.value,
            item.title or item.link or "(untitled)",
            ", ".join(item.tags),
            item.id,
        )
    console.print(table)


@app.command()
def search(
    query: Annotated[str, Argument(help="Free-text query.")],
    owner: OwnerOption,
    limit: LimitOption = 10,
    item_type: Annotated[
        str | None, Option("--type", "-t", help="Only items of this type.")
    ] = None,
    tag: Annotated[
        list[str] | None, Option("--tag", help="Only items carrying any of these tags.")
    ] = None,
    db_path: DbPathOption = None,
) -> None:
    """Rank an owner's items against a query."""
    store = _open_store(db_path)
    try:
        engine = _build_engine(store)
        results = asyncio.run(
            engine.search(query, owner, limit, item_type=item_type, tags=tag)
        )
    except StoreUnavailableError as exc:
        console.print(f"[bold red]{exc}[/]")
        raise Exit(code=1)
    finally:
        store.close()
    _print_scored(results, f"Results for {query!r}")


@app.command()
def similar(
    item_id: Annotated[str, Argument(help="Reference item id.")],
    owner: OwnerOption,
    limit: LimitOption = 5,
    db_path: DbPathOption = None,
) -> None:
    """List the owner's items most similar to a reference item."""
    store = _open_store(db_path)
    try:
        results = asyncio.run(_build_engine(store).similar(item_id, owner, limit))
    except StoreUnavailableError as exc:
        console.print(f"[bold red]{exc}[/]")
        raise Exit(code=1)
    finally:
        store.close()
    _print_scored(results, f"Items similar to {item_id}")


@app.command()
def tags(
    tag_names: Annotated[list[str], Argument(help="Tags to look for (any of).")],
    owner: OwnerOption,
    limit: LimitOption = 10,
    db_path: DbPathOption = None,
) -> None:
    """List the newest items carrying any of the given tags."""
    store = _open_store(db_path)
    try:
        items = asyncio.run(_build_engine(store).search_by_tags(tag_names, owner, limit))
    except StoreUnavailableError as exc:
        console.print(f"[bold red]{exc}[/]")
        raise Exit(code=1)
    finally:
        store.close()
    _print_items(items, f"Tagged {', '.join(tag_names)}")


@app.command(name="type")
def by_type(
    item_type: Annotated[str, Argument(help="Item type, e.g. note or website.")],
    owner: OwnerOption,
    limit: LimitOption = 10,
    db_path: DbPathOption = None,
) -> None:
    """List the newest items of one type."""
    store = _open_store(db_path)
    try:
        items = asyncio.run(_build_engine(store).search_by_type(item_type, owner, limit))
    except StoreUnavailableError as exc:
        console.print(f"[bold red]{exc}[/]")
        raise Exit(code=1)
    finally:
        store.close()
    _print_items(items, f"Items of type {item_type}")


@app.command()
def enrich(
    owner: Annotated[
        str | None, Option("--owner", "-o", help="Only this owner's items.")
    ] = None,
    limit: LimitOption = 50,
    db_path: DbPathOption = None,
) -> None:
    """Summarize, tag and embed pending items."""
    store = _open_store(db_path)
    try:
        pipeline = EnrichmentPipeline(store, _build_gateway())
        with console.status(status="Enriching pending items..."):
            result = asyncio.run(pipeline.enrich_pending(owner_id=owner, limit=limit))
    finally:
        store.close()
    console.print(
        f"[bold green]Processed {result.processed}[/]: "
        f"{result.completed} completed, {result.failed} failed, "
        f"{result.embeddings_written} embedded."
    )
