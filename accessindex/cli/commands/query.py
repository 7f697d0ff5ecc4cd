"""``accessindex events | roles | owner``: read indexed state back out."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from accessindex.config import config
from accessindex.core.identifiers import generate_contract_id, generate_contract_ownership_id
from accessindex.core.normalizer import InvalidFormatError, format_role, normalize_evm_address
from accessindex.models.entities import EventType
from accessindex.models.query import EntityQuery
from accessindex.networks import UnknownNetworkError, get_network_by_id
from accessindex.store import SqliteEntityStore

console = Console()

ROLES_PAGE_SIZE = 1000


def _open(db: Path | None) -> SqliteEntityStore:
    path = db or config.db_path
    if not Path(path).exists():
        console.print(f"[red]No index database at {path}[/red]")
        raise typer.Exit(code=1)
    return SqliteEntityStore(path)


def _ts(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def _is_evm(network_id: str) -> bool:
    try:
        return get_network_by_id(network_id).ecosystem == "evm"
    except UnknownNetworkError as exc:
        raise typer.BadParameter(exc.args[0], param_hint="--network")


def _canonical(network_id: str, address: str | None) -> str | None:
    """EVM addresses are stored lowercase; Stellar strkeys as given."""
    if address is None:
        return None
    if not _is_evm(network_id):
        return address.strip()
    try:
        return normalize_evm_address(address)
    except InvalidFormatError as exc:
        raise typer.BadParameter(str(exc))


def events_cmd(
    network: Optional[str] = typer.Option(None, "--network", "-n", help="Network id."),
    contract: Optional[str] = typer.Option(None, "--contract", "-c", help="Contract address."),
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Account address."),
    role: Optional[str] = typer.Option(None, "--role", "-r", help="Role (bytes32 hex or symbol)."),
    event_type: Optional[EventType] = typer.Option(None, "--type", "-t", help="Event type."),
    first: Optional[int] = typer.Option(None, "--first", min=1, max=1000, help="Page size."),
    offset: int = typer.Option(0, "--offset", min=0, help="Rows to skip."),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path."),
) -> None:
    """List access-control events, newest first."""
    network_id = network or config.network_id
    query = EntityQuery(
        network=network_id,
        contract=_canonical(network_id, contract),
        account=_canonical(network_id, account),
        role=format_role(role) if role and _is_evm(network_id) else role,
        event_type=event_type,
        first=first or config.page_size,
        offset=offset,
    )
    with _open(db) as store:
        events = store.events.find(query)

    if not events:
        console.print("[dim]No events found.[/dim]")
        return

    table = Table(title=f"Events on {query.network}")
    table.add_column("Time (UTC)", style="dim")
    table.add_column("Block", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Contract")
    table.add_column("Details")
    table.add_column("Tx", style="dim")

    for event in events:
        details = [
            f"{name}={value}"
            for name, value in (
                ("role", event.role),
                ("account", event.account),
                ("sender", event.sender),
                ("prev_owner", event.previous_owner),
                ("new_owner", event.new_owner),
                ("prev_admin", event.previous_admin),
                ("new_admin", event.new_admin),
                ("prev_admin_role", event.previous_admin_role),
                ("new_admin_role", event.new_admin_role),
                ("live_until", event.live_until_ledger),
                ("accept_at", event.accept_schedule),
                ("new_delay", event.new_delay),
                ("effect_at", event.effect_schedule),
            )
            if value is not None
        ]
        table.add_row(
            _ts(event.timestamp),
            str(event.block_number),
            event.event_type.value,
            event.contract,
            "\n".join(details),
            event.tx_hash,
        )
    console.print(table)


def roles_cmd(
    contract: str = typer.Option(..., "--contract", "-c", help="Contract address."),
    network: Optional[str] = typer.Option(None, "--network", "-n", help="Network id."),
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Only this account."),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path."),
) -> None:
    """Show the current role members of a contract."""
    network_id = network or config.network_id
    contract = _canonical(network_id, contract)
    query = EntityQuery(
        network=network_id,
        contract=contract,
        account=_canonical(network_id, account),
        first=ROLES_PAGE_SIZE,
    )
    members = []
    with _open(db) as store:
        while True:
            page = store.memberships.find(query)
            members.extend(page)
            if len(page) < query.first:
                break
            query = query.model_copy(update={"offset": query.offset + len(page)})

    if not members:
        console.print("[dim]No role members found.[/dim]")
        return

    table = Table(title=f"Role members of {contract}")
    table.add_column("Role", style="cyan")
    table.add_column("Account", style="green")
    table.add_column("Granted (UTC)", style="dim")
    table.add_column("Granted by")

    for member in sorted(members, key=lambda m: (m.role, m.account)):
        table.add_row(
            member.role,
            member.account,
            _ts(member.granted_at),
            member.granted_by or "[dim]-[/dim]",
        )
    console.print(table)
    console.print(f"[dim]{len(members)} member(s)[/dim]")


def owner_cmd(
    contract: str = typer.Option(..., "--contract", "-c", help="Contract address."),
    network: Optional[str] = typer.Option(None, "--network", "-n", help="Network id."),
    db: Optional[Path] = typer.Option(None, "--db", help="SQLite database path."),
) -> None:
    """Show the current and pending owner of a contract."""
    network_id = network or config.network_id
    contract = _canonical(network_id, contract)
    with _open(db) as store:
        ownership = store.ownerships.get(generate_contract_ownership_id(network_id, contract))
        record = store.contracts.get(generate_contract_id(network_id, contract))

    if ownership is None:
        console.print(f"[dim]No ownership record for {contract} on {network_id}.[/dim]")
        return

    lines = [
        f"[bold]Owner:[/bold]          {ownership.owner or '-'}",
        f"[bold]Previous owner:[/bold] {ownership.previous_owner or '-'}",
        f"[bold]Pending owner:[/bold]  {ownership.pending_owner or '-'}",
    ]
    if ownership.pending_until_ledger is not None:
        lines.append(f"[bold]Pending until:[/bold]  ledger {ownership.pending_until_ledger}")
    lines.append(f"[bold]Transferred:[/bold]    {_ts(ownership.transferred_at)} UTC")
    lines.append(f"[bold]Tx:[/bold]             {ownership.tx_hash or '-'}")
    if record is not None:
        lines.append(f"[bold]Contract type:[/bold]  {record.type.value}")

    console.print(Panel("\n".join(lines), title=f"{contract} on {network_id}", border_style="cyan"))
