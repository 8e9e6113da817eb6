"""
Command Line Interface for the work item splitter.
"""

import asyncio
from typing import Callable, List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from ..config import Settings, get_settings
from ..log_config import configure_logging
from ..split.cache import TypeMetadataCache
from ..split.children import EligibleChildrenResolver
from ..split.dialog import (
    DialogStore,
    edit_title,
    set_copy_tags,
    set_open_new_work_item,
    start_split,
)
from ..split.errors import NothingSelectedError, PartialMigrationError, SplitError
from ..split.orchestrator import SplitOrchestrator, SplitResult
from ..wit.client import WorkItemTrackingClient
from ..wit.store import WorkItemStore

app = typer.Typer(help="Work Item Splitter - continue unfinished children in the next sprint")
console = Console()


def _default_store(settings: Settings) -> WorkItemStore:
    return WorkItemTrackingClient.from_settings(settings)


# Replaced in tests with an in-memory store
store_factory: Callable[[Settings], WorkItemStore] = _default_store


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default: from config)"),
    log_format: Optional[str] = typer.Option(None, help="json or console (default: from config)"),
):
    """Split work items from the command line."""
    settings = get_settings()
    configure_logging(log_level or settings.log_level, log_format or settings.log_format)


async def _load_dialog(
    store: WorkItemStore, work_item_id: int
) -> Tuple[DialogStore, TypeMetadataCache]:
    cache = TypeMetadataCache(store)
    dialog = DialogStore()
    await start_split(dialog, EligibleChildrenResolver(store, cache), work_item_id)
    return dialog, cache


async def _preview(work_item_id: int) -> DialogStore:
    store = store_factory(get_settings())
    try:
        dialog, _ = await _load_dialog(store, work_item_id)
        return dialog
    finally:
        await store.close()


async def _split(
    work_item_id: int,
    child_ids: Optional[List[int]],
    title: Optional[str],
    copy_tags: bool,
    open_new_work_item: bool,
) -> Tuple[SplitResult, str, bool]:
    settings = get_settings()
    store = store_factory(settings)
    try:
        dialog, cache = await _load_dialog(store, work_item_id)
        if dialog.state.work_item_id is None:
            raise NothingSelectedError(f"Work item {work_item_id} has no children to split")

        if title is not None:
            dialog.dispatch(edit_title, title)
        dialog.dispatch(set_copy_tags, copy_tags)
        dialog.dispatch(set_open_new_work_item, open_new_work_item)

        request = dialog.details()
        if child_ids:
            request = request.model_copy(update={"child_ids": list(child_ids)})

        orchestrator = SplitOrchestrator(store, settings.split_reference_url, cache=cache)
        result = await orchestrator.split(request)
        link = store.work_item_web_url(result.target.id)
        return result, link, request.open_new_work_item
    finally:
        await store.close()


@app.command()
def preview(work_item_id: int = typer.Argument(..., help="Work item to split")):
    """Show the children a split would move by default."""
    try:
        dialog = asyncio.run(_preview(work_item_id))
    except SplitError as e:
        console.print(f"❌ {e.message}")
        raise typer.Exit(code=1)

    state = dialog.state
    if not state.has_children:
        console.print("There are no children to be split from this work item.")
        return

    table = Table(
        title=f"Incomplete items for {state.work_item_type}: {state.work_item_id}",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    for child in state.selected_children:
        table.add_row(str(child.id), child.title)
    console.print(table)
    console.print(f"New title: {state.new_title}")


@app.command()
def split(
    work_item_id: int = typer.Argument(..., help="Work item to split"),
    child: Optional[List[int]] = typer.Option(
        None, "--child", "-c", help="Child id to move (default: every unfinished child)"
    ),
    title: Optional[str] = typer.Option(None, help="Title of the new work item"),
    copy_tags: bool = typer.Option(True, "--copy-tags/--no-copy-tags", help="Copy tags"),
    open_new: bool = typer.Option(
        True, "--open/--no-open", help="Open the new work item in a browser afterwards"
    ),
):
    """Split a work item and move its children to the next iteration."""
    try:
        result, link, open_new_work_item = asyncio.run(
            _split(work_item_id, child, title, copy_tags, open_new)
        )
    except PartialMigrationError as e:
        console.print(f"❌ {e.message}")
        console.print(
            f"Work item {e.target.id} was created; check the links of "
            f"{work_item_id} and {e.target.id} by hand."
        )
        raise typer.Exit(code=1)
    except SplitError as e:
        console.print(f"❌ {e.message}")
        raise typer.Exit(code=1)

    console.print(f"✅ Created work item {result.target.id} in {result.iteration_path}")
    console.print(link)

    table = Table(title="Moved children", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Iteration")
    for child_id in result.moved_ids:
        if child_id in result.child_failures:
            table.add_row(str(child_id), f"[red]not updated: {result.child_failures[child_id]}[/red]")
        else:
            table.add_row(str(child_id), result.iteration_path)
    console.print(table)

    if open_new_work_item:
        typer.launch(link)
