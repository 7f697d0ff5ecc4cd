"""``accessindex ingest``: replay a JSON-lines file of raw chain events.

Each non-blank line is one event in the chain framework's shape
(``EvmLog`` or ``StellarEvent``, camelCase keys). Soroban ``topic`` and
``value`` entries are base64-encoded XDR.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from accessindex.config import config
from accessindex.core.indexer import Indexer
from accessindex.networks import UnknownNetworkError
from accessindex.store import open_store

logger = logging.getLogger(__name__)

console = Console()


def _read_events(path: Path, bad_lines: list[int]) -> Iterator[dict[str, Any]]:
    with path.open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                logger.warning("Skipping line %d of %s: %s", lineno, path, exc)
                bad_lines.append(lineno)
                continue
            if not isinstance(payload, dict):
                logger.warning("Skipping line %d of %s: not a JSON object", lineno, path)
                bad_lines.append(lineno)
                continue
            yield payload


def ingest_cmd(
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True,
        help="JSON-lines file of raw events.",
    ),
    network: Optional[str] = typer.Option(
        None, "--network", "-n", help="Registry network id (default: ACCESSINDEX_NETWORK_ID)."
    ),
    db: Optional[Path] = typer.Option(
        None, "--db", help="SQLite database path (default: ACCESSINDEX_DB_PATH)."
    ),
    backend: Optional[str] = typer.Option(
        None, "--backend", help="Store backend: sqlite or memory (memory is a dry run)."
    ),
) -> None:
    """Run every event in FILE through the indexer for one network."""
    network_id = network or config.network_id
    store = open_store(backend or config.store_backend, db or config.db_path)
    try:
        try:
            indexer = Indexer(network_id, store)
        except UnknownNetworkError as exc:
            console.print(f"[red]{exc.args[0]}[/red]")
            raise typer.Exit(code=1)

        bad_lines: list[int] = []
        stats = indexer.process_many(_read_events(file, bad_lines))
    finally:
        store.close()

    skipped = stats.skipped + len(bad_lines)
    console.print(
        Panel(
            f"[bold]Network:[/bold]  {network_id}\n"
            f"[bold]Received:[/bold] {stats.received + len(bad_lines)}\n"
            f"[bold]Indexed:[/bold]  [green]{stats.indexed}[/green]\n"
            f"[bold]Skipped:[/bold]  [yellow]{skipped}[/yellow]",
            title="Ingest complete",
            border_style="green" if skipped == 0 else "yellow",
        )
    )
