"""
Sample-data seeding script for the contract registry.

Generates a deterministic mix of fungible and collection records and creates
them through the record operations, so every row goes through validation.
"""

from __future__ import annotations

import random
import time
from typing import Any, Dict, List, Tuple

import typer

from contract_registry import operations
from contract_registry.config import get_settings
from contract_registry.domain.models import TypeTag
from contract_registry.infrastructure import create_store
from contract_registry.utils.logging import configure_logging, get_logger

app = typer.Typer(help="Seed the configured store with sample contract records.")
log = get_logger(__name__)

_WORDS = ["Aurora", "Basalt", "Cobalt", "Drift", "Ember", "Fjord", "Glyph", "Harbor"]


def _generate_inputs(count: int, seed: int) -> List[Tuple[TypeTag, Dict[str, Any]]]:
    rng = random.Random(seed)
    inputs: List[Tuple[TypeTag, Dict[str, Any]]] = []
    for i in range(count):
        word = rng.choice(_WORDS)
        symbol = f"{word[:3].upper()}{i}"[:10]
        if rng.random() < 0.5:
            inputs.append(
                (
                    TypeTag.FUNGIBLE,
                    {
                        "name": f"{word} Token {i}",
                        "symbol": symbol,
                        "total_supply": str(rng.randint(1, 10**12) * 10**18),
                        "decimals": rng.choice([0, 6, 8, 18]),
                    },
                )
            )
        else:
            max_supply = rng.choice([None, "1000", "10000", "100000"])
            inputs.append(
                (
                    TypeTag.COLLECTION,
                    {
                        "name": f"{word} Collection {i}",
                        "symbol": symbol,
                        "base_uri": f"https://example.com/{word.lower()}/{i}/",
                        "maximum_supply": max_supply,
                    },
                )
            )
    return inputs


@app.command()
def main(
    count: int = typer.Option(
        20,
        "--count",
        "-c",
        help="Number of records to create.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
) -> None:
    """
    Create sample records in the store selected by DB_BACKEND.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    start = time.perf_counter()

    with create_store(settings) as store:
        store.create_schema()
        for type_tag, payload in _generate_inputs(count, seed):
            if type_tag is TypeTag.FUNGIBLE:
                operations.create_fungible(store, payload)
            else:
                operations.create_collection(store, payload)

    elapsed = time.perf_counter() - start
    log.info("Seeding finished", extra={"records": count, "seconds": round(elapsed, 3)})
    typer.echo(f"Seeded {count} records in {elapsed:.2f}s.")


if __name__ == "__main__":
    app()
