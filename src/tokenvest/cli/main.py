#!/usr/bin/env python3
"""
tokenvest CLI - local vesting deployment management

Drives a vesting deployment stored in a SQLite state file:
- Initialize a deployment and fund the vesting vault
- Create, release and revoke vesting schedules
- Withdraw unreserved funds, pause and hand over admin
- Inspect schedules, releasable amounts and the event log
"""

from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tokenvest.contracts.events import EventType
from tokenvest.contracts.schedule import VestingSchedule
from tokenvest.core import config
from tokenvest.core.exceptions import (
    InsufficientReleasableAmountError,
    StorageError,
    VestingError,
)
from tokenvest.core.logging_config import setup_logging
from tokenvest.database.storage_manager import StorageManager
from tokenvest.deployment import VestingDeployment

logger = logging.getLogger(__name__)

console = Console()


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}", soft_wrap=True)
    sys.exit(exit_code)


def _emit_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2))


@contextmanager
def _deployment(ctx: click.Context, save: bool = True) -> Iterator[VestingDeployment]:
    """Load the deployment, hand it to the command and persist it on success."""
    try:
        with StorageManager(ctx.obj["db_path"]) as storage:
            deployment = VestingDeployment.load(storage, time_provider=ctx.obj["clock"])
            yield deployment
            if save:
                deployment.save(storage)
    except VestingError as exc:
        _cli_fail(exc)


def _schedule_payload(deployment: VestingDeployment, schedule: VestingSchedule) -> Dict[str, Any]:
    payload = schedule.to_dict()
    payload["cliff"] = str(schedule.cliff)
    payload["status"] = schedule.status.value
    payload["releasable"] = str(
        deployment.controller.compute_releasable_amount(schedule.schedule_id)
    )
    return payload


def _print_schedule(payload: Dict[str, Any]) -> None:
    table = Table(show_header=False, box=box.ROUNDED)
    for key in ("schedule_id", "beneficiary", "name", "status", "start", "cliff",
                "duration", "slice_interval", "total_amount", "released_amount",
                "releasable", "revocable"):
        table.add_row(f"[bold cyan]{key}", str(payload[key]))
    console.print(Panel(table, title="[bold green]Vesting Schedule", border_style="green"))


# ============================================================================
# CLI Group
# ============================================================================

@click.group()
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=config.DB_PATH,
    envvar="TOKENVEST_DB_PATH",
    show_default=True,
    help="SQLite state file of the deployment.",
)
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option(
    "--now",
    type=click.IntRange(min=0),
    default=None,
    help="Override the current unix time (seconds).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=config.LOG_LEVEL,
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, db_path: Path, json_output: bool, now: Optional[int], log_level: str):
    """
    tokenvest - token vesting engine CLI

    Manage vesting schedules of a local deployment stored in a SQLite file.
    """
    ctx.ensure_object(dict)
    setup_logging(
        name="tokenvest",
        log_file=config.LOG_FILE,
        level=log_level,
        environment=config.ENVIRONMENT.value,
    )
    ctx.obj["db_path"] = db_path
    ctx.obj["json_output"] = json_output
    ctx.obj["clock"] = (lambda: now) if now is not None else (lambda: int(time.time()))


@cli.command("init")
@click.option("--admin", required=True, help="Admin address (owns engine and token).")
@click.option("--engine-address", default=config.ENGINE_ADDRESS, show_default=True)
@click.option("--token-name", default=config.TOKEN_NAME, show_default=True)
@click.option("--token-symbol", default=config.TOKEN_SYMBOL, show_default=True)
@click.option("--decimals", type=click.IntRange(0, 18), default=config.TOKEN_DECIMALS, show_default=True)
@click.option("--supply", type=click.IntRange(min=0), default=0, help="Tokens minted into the vault.")
@click.option("--force", is_flag=True, help="Overwrite an existing deployment.")
@click.pass_context
def init(ctx: click.Context, admin: str, engine_address: str, token_name: str,
         token_symbol: str, decimals: int, supply: int, force: bool):
    """Create a new deployment and optionally fund the vault."""
    try:
        with StorageManager(ctx.obj["db_path"]) as storage:
            if VestingDeployment.exists(storage) and not force:
                raise StorageError(
                    f"deployment already exists in {ctx.obj['db_path']} (use --force)"
                )
            deployment = VestingDeployment.create(
                admin=admin,
                engine_address=engine_address,
                token_name=token_name,
                token_symbol=token_symbol,
                decimals=decimals,
                time_provider=ctx.obj["clock"],
            )
            if supply:
                deployment.ledger.mint(admin, deployment.controller.address, supply)
            deployment.save(storage)
    except VestingError as exc:
        _cli_fail(exc)

    payload = {
        "engine": deployment.controller.address,
        "admin": deployment.gate.admin,
        "token": deployment.ledger.symbol,
        "vault_balance": str(supply),
    }
    if ctx.obj["json_output"]:
        _emit_json(payload)
        return
    console.print(f"[bold green]✓[/] Deployment initialized at [cyan]{ctx.obj['db_path']}[/]")
    console.print(f"  engine: {payload['engine']}  admin: {payload['admin']}  vault: {supply}")


@cli.command("mint")
@click.option("--caller", required=True)
@click.option("--to", "recipient", default=None, help="Recipient (defaults to the vault).")
@click.option("--amount", type=click.IntRange(min=1), required=True)
@click.pass_context
def mint(ctx: click.Context, caller: str, recipient: Optional[str], amount: int):
    """Mint tokens, by default into the vesting vault."""
    with _deployment(ctx) as deployment:
        recipient = recipient or deployment.controller.address
        deployment.ledger.mint(caller, recipient, amount)
        balance = deployment.ledger.balance_of(recipient)

    if ctx.obj["json_output"]:
        _emit_json({"to": recipient, "amount": str(amount), "balance": str(balance)})
        return
    console.print(f"[bold green]✓[/] Minted {amount} to {recipient} (balance {balance})")


@cli.command("create")
@click.option("--caller", required=True)
@click.option("--beneficiary", required=True)
@click.option("--start", type=click.IntRange(min=0), required=True)
@click.option("--cliff", "cliff_offset", type=click.IntRange(min=0), default=0, show_default=True,
              help="Cliff offset in seconds after start.")
@click.option("--duration", type=click.IntRange(min=0), required=True)
@click.option("--slice", "slice_interval", type=click.IntRange(min=0), default=1, show_default=True)
@click.option("--amount", type=click.IntRange(min=0), required=True)
@click.option("--name", required=True)
@click.option("--revocable/--non-revocable", default=True, show_default=True)
@click.pass_context
def create(ctx: click.Context, caller: str, beneficiary: str, start: int, cliff_offset: int,
           duration: int, slice_interval: int, amount: int, name: str, revocable: bool):
    """Create a vesting schedule."""
    with _deployment(ctx) as deployment:
        schedule_id = deployment.controller.create_vesting_schedule(
            caller,
            beneficiary,
            start=start,
            cliff_offset=cliff_offset,
            duration=duration,
            slice_interval=slice_interval,
            revocable=revocable,
            amount=amount,
            name=name,
        )

    if ctx.obj["json_output"]:
        _emit_json({"schedule_id": schedule_id})
        return
    console.print(f"[bold green]✓[/] Schedule created: [cyan]{schedule_id}[/]", soft_wrap=True)


@cli.command("release")
@click.option("--caller", required=True)
@click.option("--id", "schedule_id", required=True)
@click.option("--amount", type=click.IntRange(min=0), default=None,
              help="Amount to release (defaults to everything releasable).")
@click.pass_context
def release(ctx: click.Context, caller: str, schedule_id: str, amount: Optional[int]):
    """Release vested tokens to the beneficiary."""
    with _deployment(ctx) as deployment:
        controller = deployment.controller
        if amount is None:
            amount = controller.compute_releasable_amount(schedule_id)
            if amount == 0:
                raise InsufficientReleasableAmountError(
                    f"nothing releasable for schedule {schedule_id} yet",
                    details={"schedule_id": schedule_id},
                )
        released = controller.release(caller, schedule_id, amount)

    if ctx.obj["json_output"]:
        _emit_json({"schedule_id": schedule_id, "released": str(released)})
        return
    console.print(f"[bold green]✓[/] Released {released}")


@cli.command("revoke")
@click.option("--caller", required=True)
@click.option("--id", "schedule_id", required=True)
@click.pass_context
def revoke(ctx: click.Context, caller: str, schedule_id: str):
    """Revoke a schedule (vested part is paid out first)."""
    with _deployment(ctx) as deployment:
        unreleased = deployment.controller.revoke(caller, schedule_id)

    if ctx.obj["json_output"]:
        _emit_json({"schedule_id": schedule_id, "unreleased": str(unreleased)})
        return
    console.print(f"[bold yellow]✓[/] Revoked; {unreleased} returned to the unreserved pool")


@cli.command("withdraw")
@click.option("--caller", required=True)
@click.option("--amount", type=click.IntRange(min=0), required=True)
@click.pass_context
def withdraw(ctx: click.Context, caller: str, amount: int):
    """Withdraw unreserved vault funds to the admin."""
    with _deployment(ctx) as deployment:
        deployment.controller.withdraw_unreserved(caller, amount)

    if ctx.obj["json_output"]:
        _emit_json({"withdrawn": str(amount)})
        return
    console.print(f"[bold green]✓[/] Withdrew {amount}")


@cli.command("pause")
@click.option("--caller", required=True)
@click.option("--reason", default="Manual pause", show_default=True)
@click.pass_context
def pause(ctx: click.Context, caller: str, reason: str):
    """Pause all mutating vesting operations."""
    with _deployment(ctx) as deployment:
        changed = deployment.controller.pause(caller, reason)

    if ctx.obj["json_output"]:
        _emit_json({"paused": True, "changed": changed})
        return
    console.print("[bold yellow]Paused[/]" if changed else "Already paused")


@cli.command("unpause")
@click.option("--caller", required=True)
@click.pass_context
def unpause(ctx: click.Context, caller: str):
    """Resume mutating vesting operations."""
    with _deployment(ctx) as deployment:
        changed = deployment.controller.unpause(caller)

    if ctx.obj["json_output"]:
        _emit_json({"paused": False, "changed": changed})
        return
    console.print("[bold green]Unpaused[/]" if changed else "Not paused")


@cli.command("transfer-admin")
@click.option("--caller", required=True)
@click.option("--new-admin", required=True)
@click.pass_context
def transfer_admin(ctx: click.Context, caller: str, new_admin: str):
    """Hand the admin slot to another address."""
    with _deployment(ctx) as deployment:
        deployment.controller.transfer_admin(caller, new_admin)
        admin = deployment.gate.admin

    if ctx.obj["json_output"]:
        _emit_json({"admin": admin})
        return
    console.print(f"[bold green]✓[/] Admin is now {admin}")


# ============================================================================
# Queries
# ============================================================================

@cli.command("show")
@click.argument("schedule_id")
@click.pass_context
def show(ctx: click.Context, schedule_id: str):
    """Show one schedule."""
    with _deployment(ctx, save=False) as deployment:
        schedule = deployment.controller.get_vesting_schedule(schedule_id)
        payload = _schedule_payload(deployment, schedule)

    if ctx.obj["json_output"]:
        _emit_json(payload)
        return
    _print_schedule(payload)


@cli.command("list")
@click.option("--beneficiary", default=None)
@click.option("--name", default=None)
@click.pass_context
def list_schedules(ctx: click.Context, beneficiary: Optional[str], name: Optional[str]):
    """List schedules, optionally by beneficiary or name."""
    if beneficiary and name:
        raise click.UsageError("use either --beneficiary or --name, not both")

    with _deployment(ctx, save=False) as deployment:
        controller = deployment.controller
        if beneficiary:
            ids = controller.get_schedule_ids_by_beneficiary(beneficiary)
        elif name:
            ids = controller.get_schedule_ids_by_name(name)
        else:
            ids = tuple(
                controller.get_vesting_id_at_index(i)
                for i in range(controller.get_vesting_schedules_count())
            )
        payloads = [
            _schedule_payload(deployment, controller.get_vesting_schedule(sid)) for sid in ids
        ]

    if ctx.obj["json_output"]:
        _emit_json({"schedules": payloads})
        return

    if not payloads:
        console.print("[yellow]No schedules found[/]")
        return

    table = Table(title="Vesting Schedules", box=box.ROUNDED)
    table.add_column("ID", style="blue", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Beneficiary", style="yellow")
    table.add_column("Status", style="magenta")
    table.add_column("Released / Total", style="green", justify="right")
    table.add_column("Releasable", style="green", justify="right")
    for p in payloads:
        table.add_row(
            p["schedule_id"][:18] + "...",
            p["name"],
            p["beneficiary"][:20],
            p["status"],
            f"{p['released_amount']} / {p['total_amount']}",
            p["releasable"],
        )
    console.print(table)


@cli.command("releasable")
@click.argument("schedule_id")
@click.pass_context
def releasable(ctx: click.Context, schedule_id: str):
    """Show the amount releasable right now."""
    with _deployment(ctx, save=False) as deployment:
        amount = deployment.controller.compute_releasable_amount(schedule_id)

    if ctx.obj["json_output"]:
        _emit_json({"schedule_id": schedule_id, "releasable": str(amount)})
        return
    console.print(f"Releasable: [bold green]{amount}[/]")


@cli.command("status")
@click.pass_context
def status(ctx: click.Context):
    """Show engine-wide balances and flags."""
    with _deployment(ctx, save=False) as deployment:
        controller = deployment.controller
        payload = {
            "engine": controller.address,
            "admin": deployment.gate.admin,
            "token": deployment.ledger.symbol,
            "paused": controller.is_paused(),
            "balance": str(deployment.ledger.balance_of(controller.address)),
            "reserved": str(controller.get_vesting_schedules_total_amount()),
            "withdrawable": str(controller.get_withdrawable_amount()),
            "schedules": controller.get_vesting_schedules_count(),
        }

    if ctx.obj["json_output"]:
        _emit_json(payload)
        return
    table = Table(show_header=False, box=box.ROUNDED)
    for key, value in payload.items():
        table.add_row(f"[bold cyan]{key}", str(value))
    console.print(Panel(table, title="[bold green]Vesting Engine", border_style="green"))


@cli.command("events")
@click.option(
    "--type",
    "event_type",
    type=click.Choice([e.value for e in EventType]),
    default=None,
)
@click.pass_context
def events(ctx: click.Context, event_type: Optional[str]):
    """Show the engine event log."""
    with _deployment(ctx, save=False) as deployment:
        selected = deployment.controller.events.filter(
            EventType(event_type) if event_type else None
        )

    if ctx.obj["json_output"]:
        _emit_json({"events": [e.to_dict() for e in selected]})
        return

    table = Table(title="Events", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Type", style="magenta")
    table.add_column("Time", style="cyan")
    table.add_column("Args", style="green")
    for e in selected:
        args = ", ".join(f"{k}={v}" for k, v in e.to_dict()["args"].items())
        table.add_row(str(e.sequence), e.event_type.value, str(e.timestamp), args)
    console.print(table)


def main():
    """Main CLI entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)


if __name__ == "__main__":
    main()
