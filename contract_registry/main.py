from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import typer

from contract_registry import operations
from contract_registry.config import get_settings
from contract_registry.domain.models import RecordView
from contract_registry.errors import RegistryError, ValidationError
from contract_registry.infrastructure import SqlRecordStore, create_store
from contract_registry.reporter import print_records
from contract_registry.utils.logging import configure_logging

app = typer.Typer(help="Contract registry CLI: manage fungible token and collection records.")


@contextmanager
def _open_store() -> Iterator[SqlRecordStore]:
    """
    Configure logging, open the configured store, and map domain errors to exit code 1.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    try:
        with create_store(settings) as store:
            yield store
    except ValidationError as exc:
        typer.echo(f"Invalid input ({len(exc.errors)} problem(s)):", err=True)
        for entry in exc.errors:
            typer.echo(f"  - {entry['field']}: {entry['message']}", err=True)
        raise typer.Exit(code=1)
    except RegistryError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


def _echo_view(view: RecordView) -> None:
    typer.echo(json.dumps(view.model_dump(mode="json"), indent=2))


def _present(**fields: Any) -> Dict[str, Any]:
    """Drop options the user did not pass, so they stay absent from the patch."""
    return {k: v for k, v in fields.items() if v is not None}


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    if settings.db_backend == "postgres":
        target = f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    else:
        target = settings.sqlite_path
    typer.echo(
        f"backend={settings.db_backend} target={target} | "
        f"env={settings.app_env} log_level={settings.log_level}"
    )


@app.command("init-db")
def init_db() -> None:
    """
    Create the records and extension tables if they do not exist.
    """
    with _open_store() as store:
        store.create_schema()
    typer.echo("Schema ready.")


@app.command()
def healthcheck() -> None:
    """
    Check that the store is reachable.
    """
    with _open_store() as store:
        typer.echo(json.dumps(operations.healthcheck(store)))


@app.command("create-fungible")
def create_fungible(
    name: str = typer.Option(..., "--name", "-n", help="Display name."),
    symbol: str = typer.Option(..., "--symbol", "-s", help="Symbol, 1-10 characters."),
    total_supply: str = typer.Option(..., "--total-supply", help="Total supply as decimal digits."),
    decimals: int = typer.Option(18, "--decimals", "-d", help="Decimals, 0-18."),
) -> None:
    """
    Create a fungible token record.
    """
    with _open_store() as store:
        view = operations.create_fungible(
            store,
            {"name": name, "symbol": symbol, "total_supply": total_supply, "decimals": decimals},
        )
    _echo_view(view)


@app.command("create-collection")
def create_collection(
    name: str = typer.Option(..., "--name", "-n", help="Display name."),
    symbol: str = typer.Option(..., "--symbol", "-s", help="Symbol, 1-10 characters."),
    base_uri: str = typer.Option(..., "--base-uri", help="Metadata base URI."),
    max_supply: Optional[str] = typer.Option(
        None, "--max-supply", help="Maximum supply as decimal digits (omit for unlimited)."
    ),
) -> None:
    """
    Create a collection record.
    """
    with _open_store() as store:
        view = operations.create_collection(
            store,
            {"name": name, "symbol": symbol, "base_uri": base_uri, "maximum_supply": max_supply},
        )
    _echo_view(view)


@app.command("update-fungible")
def update_fungible(
    record_id: int = typer.Argument(..., help="Record identifier."),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    symbol: Optional[str] = typer.Option(None, "--symbol", "-s"),
    total_supply: Optional[str] = typer.Option(None, "--total-supply"),
    decimals: Optional[int] = typer.Option(None, "--decimals", "-d"),
) -> None:
    """
    Update a fungible token record; only the options given are changed.
    """
    patch = _present(name=name, symbol=symbol, total_supply=total_supply, decimals=decimals)
    with _open_store() as store:
        view = operations.update_fungible(store, {"id": record_id, **patch})
    _echo_view(view)


@app.command("update-collection")
def update_collection(
    record_id: int = typer.Argument(..., help="Record identifier."),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    symbol: Optional[str] = typer.Option(None, "--symbol", "-s"),
    base_uri: Optional[str] = typer.Option(None, "--base-uri"),
    max_supply: Optional[str] = typer.Option(None, "--max-supply"),
    unlimited: bool = typer.Option(False, "--unlimited", help="Clear the maximum supply."),
) -> None:
    """
    Update a collection record; only the options given are changed.
    """
    if unlimited and max_supply is not None:
        typer.echo("Error: --max-supply and --unlimited are mutually exclusive.", err=True)
        raise typer.Exit(code=2)
    patch = _present(name=name, symbol=symbol, base_uri=base_uri, maximum_supply=max_supply)
    if unlimited:
        patch["maximum_supply"] = None
    with _open_store() as store:
        view = operations.update_collection(store, {"id": record_id, **patch})
    _echo_view(view)


@app.command()
def get(record_id: int = typer.Argument(..., help="Record identifier.")) -> None:
    """
    Show one record with its extension.
    """
    with _open_store() as store:
        view = operations.get_by_id(store, {"id": record_id})
    if view is None:
        typer.echo(f"Record with id {record_id} not found.", err=True)
        raise typer.Exit(code=1)
    _echo_view(view)


@app.command("list")
def list_records(
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """
    List every record in insertion order.
    """
    with _open_store() as store:
        views = operations.get_all(store)
    if as_json:
        typer.echo(json.dumps([v.model_dump(mode="json") for v in views], indent=2))
    else:
        print_records(views)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
