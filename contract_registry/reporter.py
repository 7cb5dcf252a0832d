from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from contract_registry.domain.models import RecordView, TypeTag


def _supply_cells(view: RecordView) -> tuple[str, str]:
    """Return the (supply, details) cells for one record."""
    if view.type_tag is TypeTag.FUNGIBLE:
        ext = view.fungible_extension
        if ext is None:
            return "N/A", "[red]missing extension[/red]"
        return ext.total_supply, f"decimals={ext.decimals}"

    ext = view.collection_extension
    if ext is None:
        return "N/A", "[red]missing extension[/red]"
    supply = ext.maximum_supply if ext.maximum_supply is not None else "unlimited"
    return supply, escape(ext.base_uri)


def print_records(records: Sequence[RecordView], console: Optional[Console] = None) -> None:
    """
    Render records as a rich table, in the order given.
    """
    console = console or Console()

    if not records:
        console.print("[yellow]No records to display.[/yellow]")
        return

    fungible = sum(1 for r in records if r.type_tag is TypeTag.FUNGIBLE)
    title = (
        "Contract Registry\n"
        f"[dim]{fungible} fungible │ {len(records) - fungible} collection[/dim]"
    )
    table = Table(title=title, box=box.ROUNDED)

    table.add_column("ID", justify="right", style="magenta", no_wrap=True)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Symbol", style="green", no_wrap=True)
    table.add_column("Supply", justify="right", style="yellow")
    table.add_column("Details", style="blue")
    table.add_column("Updated (UTC)", style="dim", no_wrap=True)

    for view in records:
        supply, details = _supply_cells(view)
        table.add_row(
            str(view.id),
            view.type_tag.value,
            escape(view.name),
            escape(view.symbol),
            supply,
            details,
            view.updated_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)
