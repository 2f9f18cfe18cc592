"""``merchdeploy publish`` — publish the compiled package.

Creates a fresh deployment manifest recording the package id and deployer.
Any failure to build, sign, submit or execute the transaction exits 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel

from merchdeploy.cli import _shared
from merchdeploy.config import DeployConfig
from merchdeploy.errors import MerchDeployError
from merchdeploy.stages import PublishStage

console = Console()


def run_publish(cfg: DeployConfig) -> dict[str, Any]:
    """Run the publish stage and print its outcome; exits 1 on failure."""
    console.print("[bold cyan]Publishing package...[/bold cyan]")
    try:
        with _shared.open_context(cfg) as context:
            result = PublishStage().run_stage(context)
    except MerchDeployError as exc:
        _shared.fail("Publish failed", exc)

    if result["status"] != "published":
        console.print(
            f"[bold yellow]Transaction {result.get('digest')} succeeded but reported "
            "no published package; manifest not written.[/bold yellow]"
        )
        return result

    console.print(
        Panel(
            "\n".join([
                "[bold green]Package published![/bold green]",
                "",
                f"[bold]Package ID:[/bold] {result['package_id']}",
                f"[bold]Digest:[/bold]     {result['digest']}",
                f"[bold]Deployer:[/bold]   {result['deployer_address']}",
                f"[bold]Manifest:[/bold]   {cfg.manifest_path}",
            ]),
            title="[bold]Publish[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
    return result


def publish_cmd(
    keystore: Path = typer.Option(None, "--keystore", "-k", help="Path to the keystore file."),
    manifest: Path = typer.Option(None, "--manifest", "-m", help="Path to the deployment manifest."),
    project_root: Path = typer.Option(
        None, "--project-root", "-p", help="Directory containing Move.toml."
    ),
    build_dir: Path = typer.Option(None, "--build-dir", help="Compiled package directory."),
    rpc_url: str = typer.Option(None, "--rpc-url", help="Ledger JSON-RPC endpoint."),
    gas_budget: int = typer.Option(None, "--gas-budget", help="Gas budget for the transaction."),
) -> None:
    """Publish the compiled Move package and record it in the manifest."""
    cfg = _shared.build_config(
        keystore_path=keystore,
        manifest_path=manifest,
        project_root=project_root,
        build_dir=build_dir,
        rpc_url=rpc_url,
        gas_budget=gas_budget,
    )
    run_publish(cfg)
