"""``accessindex networks``: list the network registry."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from accessindex.networks import ALL_NETWORKS, EvmNetworkConfig

console = Console()


def networks_cmd(
    ecosystem: Optional[str] = typer.Option(
        None, "--ecosystem", "-e", help="Filter by ecosystem: evm or stellar."
    ),
    testnets: Optional[bool] = typer.Option(
        None, "--testnets/--mainnets", help="Only testnets, or only mainnets."
    ),
) -> None:
    """Show every network an indexer can be bound to."""
    if ecosystem is not None and ecosystem not in ("evm", "stellar"):
        raise typer.BadParameter("must be 'evm' or 'stellar'", param_hint="--ecosystem")

    networks = [
        n
        for n in ALL_NETWORKS
        if (ecosystem is None or n.ecosystem == ecosystem)
        and (testnets is None or n.is_testnet == testnets)
    ]

    table = Table(title=f"Networks ({len(networks)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Ecosystem")
    table.add_column("Type")
    table.add_column("Chain ID", justify="right")
    table.add_column("Start block", justify="right")

    for n in networks:
        kind = "[yellow]testnet[/yellow]" if n.is_testnet else "[green]mainnet[/green]"
        chain_id = str(n.chain_id) if isinstance(n, EvmNetworkConfig) else "-"
        table.add_row(n.id, n.name, n.ecosystem, kind, chain_id, str(n.start_block))

    console.print(table)
