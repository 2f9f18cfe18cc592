"""``merchdeploy menu`` — interactive, read-only deployment explorer."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.prompt import Prompt

from merchdeploy.cli import _shared
from merchdeploy.core.identity import load
from merchdeploy.errors import ConfigurationError, NetworkError
from merchdeploy.stages import StageContext

console = Console()

_CHOICES = {
    "1": "Show deployment",
    "2": "Check balance",
    "3": "View object",
    "4": "Exit",
}


def _show_deployment(context: StageContext) -> None:
    try:
        record = context.manifest_store.load()
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    if record is None:
        console.print("[dim]No deployment recorded yet.[/dim]")
        return
    console.print_json(json.dumps(record.to_json_dict()))


def _check_balance(context: StageContext) -> None:
    cfg = context.config
    try:
        address = load(cfg.keystore_path).address
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    try:
        balance = context.gateway.get_balance(address, cfg.coin_type)
    except NetworkError as exc:
        console.print(f"[red]Balance lookup failed:[/red] {exc}")
        return
    console.print(
        f"[bold]{address}[/bold]: {balance.total_balance / 1_000_000_000:.4f} SUI "
        f"in {balance.coin_object_count} coin object(s)"
    )


def _view_object(context: StageContext) -> None:
    object_id = Prompt.ask("Object id").strip()
    if not object_id:
        return
    try:
        data = context.gateway.get_object(object_id)
    except NetworkError as exc:
        console.print(f"[red]Object lookup failed:[/red] {exc}")
        return
    if data is None:
        console.print(f"[yellow]Object {object_id} not found.[/yellow]")
        return
    console.print_json(json.dumps(data))


def menu_cmd(
    keystore: Path = typer.Option(None, "--keystore", "-k", help="Path to the keystore file."),
    manifest: Path = typer.Option(None, "--manifest", "-m", help="Path to the deployment manifest."),
    rpc_url: str = typer.Option(None, "--rpc-url", help="Ledger JSON-RPC endpoint."),
) -> None:
    """Browse the deployment, balance and ledger objects without changing anything."""
    cfg = _shared.build_config(keystore_path=keystore, manifest_path=manifest, rpc_url=rpc_url)
    actions = {"1": _show_deployment, "2": _check_balance, "3": _view_object}

    with _shared.open_context(cfg) as context:
        while True:
            console.print()
            for key, label in _CHOICES.items():
                console.print(f"  [cyan]{key}[/cyan]. {label}")
            choice = Prompt.ask("Choose", choices=list(_CHOICES), default="4")
            if choice == "4":
                break
            actions[choice](context)
