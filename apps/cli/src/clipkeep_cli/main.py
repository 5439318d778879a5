# region Docstring
"""
clipkeep_cli.main
Command-line front end for the clipboard history store.
Overview:
- Stands in for the GUI: captures text or images, lists and searches the ordered view,
    toggles pinned/sticky flags, edits keywords, runs sweeps, and changes the retention
    settings.
- Each command opens the store from the current settings, runs one operation on it,
    and closes it again.
Contents:
- Commands:
    capture, list, search, show, pin, unpin, sticky, unsticky, keywords, tag, sweep,
    clear, config show, config set, config reset
- Functions:
    - open_store: Context manager yielding an opened ClipboardStore. Store errors are
        printed and turned into exit code 1.
    - entry: Console script entry point.
Design Notes:
- Item ids may be abbreviated to any unique prefix; listings show the first 8
    characters.
"""
# endregion
# region Imports
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

import typer
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from clipkeep.config import AppEnv, RetentionPolicy, save_history_settings
from clipkeep.constants import MAX_ITEMS_RANGE, RETENTION_DAYS_RANGE
from clipkeep.errors import ClipboardStoreError
from clipkeep.logger import setup_logging
from clipkeep.models import ClipboardItem
from clipkeep_services import CaptureEvent, ClipboardStore

from .config import (
    LIST_LIMIT,
    console,
    database_settings,
    history_settings,
    logging_settings,
)

# endregion
# region App

app = typer.Typer(
    name="clipkeep",
    help="Bounded, durable clipboard history.",
    no_args_is_help=True,
)
config_app = typer.Typer(
    name="config", help="Show or change the retention settings.", no_args_is_help=True
)
app.add_typer(config_app, name="config")


@contextmanager
def open_store() -> Iterator[ClipboardStore]:
    """Open the store configured by the current settings and close it afterwards."""
    logger = setup_logging(logging_settings())
    store = ClipboardStore.from_settings(
        logger, history_settings(), database_settings()
    )
    try:
        store.open()
        yield store
    except (ClipboardStoreError, ValueError) as e:
        logger.error(f"Command failed: {e}")
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)
    finally:
        store.close()


def _flags(item: ClipboardItem) -> str:
    flags = []
    if item.pinned:
        flags.append("pin")
    if item.sticky:
        flags.append("sticky")
    return " ".join(flags)


def render_items(
    items: Sequence[ClipboardItem], title: str, show_all: bool = False
) -> None:
    if not items:
        console.print("[dim]No items.[/dim]")
        return
    shown = items if show_all else items[:LIST_LIMIT]
    table = Table(title=escape(title))
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Flags", style="yellow", no_wrap=True)
    table.add_column("Content")
    table.add_column("Keywords", style="magenta")
    table.add_column("Age", justify="right", no_wrap=True)
    for item in shown:
        table.add_row(
            item.id[:8],
            _flags(item),
            Text(item.preview.replace("\n", " ")),
            Text(", ".join(item.keywords)),
            item.time_ago(),
        )
    console.print(table)
    if len(shown) < len(items):
        console.print(f"[dim]{len(items) - len(shown)} more, use --all[/dim]")


# endregion
# region Capture & Browse


@app.command(name="capture", help="Capture text (argument or stdin) or an image file.")
def capture(
    text: Optional[str] = typer.Argument(
        None, help="Text to capture. Read from stdin when omitted."
    ),
    image: Optional[Path] = typer.Option(
        None,
        "--image",
        "-i",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Image file to capture. Takes precedence over text.",
    ),
):
    data = image.read_bytes() if image else None
    if text is None and data is None:
        text = sys.stdin.read().removesuffix("\n")
    with open_store() as store:
        outcome = store.capture(CaptureEvent(text=text, image=data))
    if outcome is None:
        console.print("[yellow]Nothing to capture.[/yellow]")
        return
    verb = "Refreshed" if outcome.touched else "Captured"
    console.print(f"[bold green]{verb}[/bold green] {outcome.item_id}")


@app.command(name="list", help="Show the history, pinned items first.")
def list_items(
    show_all: bool = typer.Option(
        False, "--all", "-a", help=f"Show every item, not only the first {LIST_LIMIT}."
    ),
):
    with open_store() as store:
        render_items(store.items, "Clipboard history", show_all)


@app.command(name="search", help="Show items whose text or keywords contain QUERY.")
def search(
    query: str = typer.Argument(..., help="Case-insensitive substring."),
    show_all: bool = typer.Option(False, "--all", "-a", help="Show every match."),
):
    with open_store() as store:
        render_items(store.search(query), f"Matches for '{query}'", show_all)


@app.command(name="show", help="Print the full text of an item.")
def show(item_id: str = typer.Argument(..., help="Item id or unique prefix.")):
    with open_store() as store:
        item = store.get(store.resolve_id(item_id))
    typer.echo(item.content)


# endregion
# region Edits


def _update(item_id: str, message: str, **changes) -> None:
    with open_store() as store:
        full_id = store.resolve_id(item_id)
        store.update_item(full_id, **changes)
    console.print(f"{message} {full_id}")


@app.command(name="pin", help="Pin an item: always kept, always listed first.")
def pin(item_id: str = typer.Argument(..., help="Item id or unique prefix.")):
    _update(item_id, "Pinned", pinned=True)


@app.command(name="unpin", help="Unpin an item.")
def unpin(item_id: str = typer.Argument(..., help="Item id or unique prefix.")):
    _update(item_id, "Unpinned", pinned=False)


@app.command(name="sticky", help="Make an item sticky: never expired by age.")
def sticky(item_id: str = typer.Argument(..., help="Item id or unique prefix.")):
    _update(item_id, "Made sticky", sticky=True)


@app.command(name="unsticky", help="Make an item expire by age again.")
def unsticky(item_id: str = typer.Argument(..., help="Item id or unique prefix.")):
    _update(item_id, "Made non-sticky", sticky=False)


@app.command(name="keywords", help="Replace the keywords of an item.")
def keywords(
    item_id: str = typer.Argument(..., help="Item id or unique prefix."),
    words: Optional[List[str]] = typer.Argument(
        None, help="New keywords. None clears the list."
    ),
):
    with open_store() as store:
        full_id = store.resolve_id(item_id)
        store.set_keywords(full_id, words or [])
        item = store.get(full_id)
    listed = ", ".join(item.keywords) or "(none)"
    console.print(f"Keywords of {full_id}: {escape(listed)}")


@app.command(name="tag", help="Add one keyword to an item.")
def tag(
    item_id: str = typer.Argument(..., help="Item id or unique prefix."),
    keyword: str = typer.Argument(..., help="Keyword to add."),
):
    with open_store() as store:
        full_id = store.resolve_id(item_id)
        store.add_keyword(full_id, keyword)
        item = store.get(full_id)
    console.print(f"Keywords of {full_id}: {escape(', '.join(item.keywords))}")


@app.command(name="sweep", help="Apply the retention and capacity policies now.")
def sweep():
    with open_store() as store:
        result = store.sweep()
    console.print(
        f"Removed {result.expired} expired and {result.evicted} over-capacity items."
    )


@app.command(name="clear", help="Delete every item, pinned and sticky included.")
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation.")
):
    if not yes:
        typer.confirm("Delete the whole clipboard history?", abort=True)
    with open_store() as store:
        removed = store.clear()
    console.print(f"Deleted {removed} items.")


# endregion
# region Config


def _apply_policy(policy: RetentionPolicy) -> None:
    with open_store() as store:
        path = save_history_settings(policy)
        result = store.update_config(policy).result()
    console.print(
        f"Saved retention_days={policy.retention_days}, max_items={policy.max_items} "
        f"to {path}"
    )
    console.print(
        f"Removed {result.expired} expired and {result.evicted} over-capacity items."
    )


@config_app.command(name="show", help="Print the effective settings.")
def config_show():
    history = history_settings()
    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("retention_days", str(history.retention_days))
    table.add_row("max_items", str(history.max_items))
    table.add_row("db_path", str(database_settings().db_path))
    table.add_row("log_file", str(logging_settings().log_file))
    table.add_row("settings_file", str(AppEnv.settings_files()[0]))
    console.print(table)


@config_app.command(name="set", help="Change the retention settings and re-sweep.")
def config_set(
    retention_days: Optional[int] = typer.Option(
        None,
        "--retention-days",
        min=RETENTION_DAYS_RANGE[0],
        max=RETENTION_DAYS_RANGE[1],
        help="Days a non-sticky item is kept.",
    ),
    max_items: Optional[int] = typer.Option(
        None,
        "--max-items",
        min=MAX_ITEMS_RANGE[0],
        max=MAX_ITEMS_RANGE[1],
        help="Maximum number of regular items.",
    ),
):
    if retention_days is None and max_items is None:
        console.print("[yellow]Nothing to change.[/yellow]")
        raise typer.Exit(code=1)
    current = history_settings().policy
    policy = RetentionPolicy(
        retention_days=(
            retention_days if retention_days is not None else current.retention_days
        ),
        max_items=max_items if max_items is not None else current.max_items,
    )
    _apply_policy(policy)


@config_app.command(name="reset", help="Restore the default retention settings.")
def config_reset():
    _apply_policy(RetentionPolicy())


# endregion


def entry():
    """Entry point for the clipkeep console script."""
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise e


if __name__ == "__main__":
    entry()
