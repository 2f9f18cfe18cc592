"""``merchdeploy verify`` — confirm the deployment on the ledger.

Exit status is 1 only for a failed verification (package missing or the init
transaction not successful); a partial result exits 0 and lists what is
missing.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from merchdeploy.cli import _shared
from merchdeploy.errors import MerchDeployError
from merchdeploy.models.reports import VerificationOutcome
from merchdeploy.stages import VerifyStage

console = Console()

_STYLES = {
    VerificationOutcome.VERIFIED.value: "green",
    VerificationOutcome.PARTIAL.value: "yellow",
    VerificationOutcome.FAILED.value: "red",
}


def verify_cmd(
    manifest: Path = typer.Option(None, "--manifest", "-m", help="Path to the deployment manifest."),
    rpc_url: str = typer.Option(None, "--rpc-url", help="Ledger JSON-RPC endpoint."),
) -> None:
    """Verify the package, the init transaction and the marketplace objects."""
    cfg = _shared.build_config(manifest_path=manifest, rpc_url=rpc_url)

    try:
        with _shared.open_context(cfg) as context:
            result = VerifyStage().run_stage(context)
    except MerchDeployError as exc:
        _shared.fail("Verification failed", exc)

    status = result["status"]
    style = _STYLES[status]

    table = Table(title="Deployment verification", show_header=False)
    table.add_column("Check", style="bold")
    table.add_column("Value")
    table.add_row("Package", f"{result['package_id']} ({'found' if result['package_found'] else 'missing'})")
    table.add_row("Init transaction", f"{result['init_tx']} ({result.get('init_status') or 'unknown'})")
    if result.get("init_error"):
        table.add_row("On-chain error", f"[red]{escape(result['init_error'])}[/red]")
    table.add_row("Marketplace", result.get("marketplace_id") or "[yellow]not found[/yellow]")
    table.add_row("Marketplace cap", result.get("marketplace_cap_id") or "[yellow]not found[/yellow]")
    for name, value in result.get("marketplace_fields", {}).items():
        table.add_row(name, value)
    if result.get("balance") is not None:
        table.add_row("Deployer balance", f"{result['balance'] / 1_000_000_000:.4f} SUI")
    console.print(table)
    console.print(f"[bold {style}]{status.upper()}[/bold {style}] {result['message']}")

    if status == VerificationOutcome.FAILED.value:
        raise typer.Exit(code=1)
