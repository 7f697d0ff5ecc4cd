"""Main Typer application: imports and registers all CLI commands.

Entry point: ``accessindex`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.logging import RichHandler

from accessindex.cli.commands.ingest import ingest_cmd
from accessindex.cli.commands.networks import networks_cmd
from accessindex.cli.commands.query import events_cmd, owner_cmd, roles_cmd
from accessindex.config import config

app = typer.Typer(
    name="accessindex",
    help="accessindex: OpenZeppelin access-control indexer for EVM and Stellar.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (default: ACCESSINDEX_LOG_LEVEL)."
    ),
) -> None:
    level = (log_level or ("DEBUG" if config.debug else config.log_level)).upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


# Register subcommands
app.command(name="ingest", help="Replay a JSON-lines file of raw events into the index.")(ingest_cmd)
app.command(name="events", help="List indexed access-control events.")(events_cmd)
app.command(name="roles", help="Show current role members of a contract.")(roles_cmd)
app.command(name="owner", help="Show current ownership of a contract.")(owner_cmd)
app.command(name="networks", help="List supported networks.")(networks_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
