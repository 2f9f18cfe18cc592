"""``merchdeploy initialize`` — call the marketplace init entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from merchdeploy.cli import _shared
from merchdeploy.config import DeployConfig
from merchdeploy.errors import MerchDeployError
from merchdeploy.stages import InitializeStage

console = Console()


def run_initialize(cfg: DeployConfig) -> dict[str, Any]:
    """Run the initialize stage and print its outcome; exits 1 on failure."""
    console.print("[bold cyan]Initializing marketplace...[/bold cyan]")
    try:
        with _shared.open_context(cfg) as context:
            result = InitializeStage().run_stage(context)
    except MerchDeployError as exc:
        _shared.fail("Initialization failed", exc)

    if result["status"] == "already_initialized":
        console.print(
            f"[bold yellow]Marketplace already initialized in {result['digest']}.[/bold yellow]"
        )
    else:
        console.print(
            f"[bold green]Marketplace initialized[/bold green] "
            f"(package {result['package_id']}, digest {result['digest']})"
        )
    return result


def initialize_cmd(
    keystore: Path = typer.Option(None, "--keystore", "-k", help="Path to the keystore file."),
    manifest: Path = typer.Option(None, "--manifest", "-m", help="Path to the deployment manifest."),
    rpc_url: str = typer.Option(None, "--rpc-url", help="Ledger JSON-RPC endpoint."),
    gas_budget: int = typer.Option(None, "--gas-budget", help="Gas budget for the transaction."),
) -> None:
    """Initialize the marketplace on the published package."""
    cfg = _shared.build_config(
        keystore_path=keystore,
        manifest_path=manifest,
        rpc_url=rpc_url,
        gas_budget=gas_budget,
    )
    run_initialize(cfg)
