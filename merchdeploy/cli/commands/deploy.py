"""``merchdeploy deploy`` — publish, then initialize the marketplace."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from merchdeploy.cli import _shared
from merchdeploy.cli.commands.initialize import run_initialize
from merchdeploy.cli.commands.publish import run_publish

console = Console()


def deploy_cmd(
    keystore: Path = typer.Option(None, "--keystore", "-k", help="Path to the keystore file."),
    manifest: Path = typer.Option(None, "--manifest", "-m", help="Path to the deployment manifest."),
    project_root: Path = typer.Option(
        None, "--project-root", "-p", help="Directory containing Move.toml."
    ),
    build_dir: Path = typer.Option(None, "--build-dir", help="Compiled package directory."),
    rpc_url: str = typer.Option(None, "--rpc-url", help="Ledger JSON-RPC endpoint."),
) -> None:
    """Publish the package and initialize the marketplace in one go.

    Initialization is skipped when the publish transaction reports no
    package id.
    """
    cfg = _shared.build_config(
        keystore_path=keystore,
        manifest_path=manifest,
        project_root=project_root,
        build_dir=build_dir,
        rpc_url=rpc_url,
    )
    published = run_publish(cfg)
    if published["status"] != "published":
        console.print("[yellow]Skipping marketplace initialization.[/yellow]")
        return
    run_initialize(cfg)
    console.print("\n[dim]Next: run `merchdeploy verify` to confirm the deployment.[/dim]")
