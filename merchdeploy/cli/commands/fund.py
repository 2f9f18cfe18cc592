"""``merchdeploy fund`` — make sure the deployer can pay for gas.

Loads or generates the deployer keypair, checks its balance and, when it is
below the threshold, asks the faucet for tokens and waits for the transfer
to land. Faucet trouble is reported but never fails the command.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from merchdeploy.cli import _shared
from merchdeploy.errors import MerchDeployError
from merchdeploy.models.reports import FundingOutcome
from merchdeploy.stages import FundStage

console = Console()

_STYLES: dict[str, str] = {
    FundingOutcome.ALREADY_FUNDED.value: "green",
    FundingOutcome.CONFIRMED.value: "green",
    FundingOutcome.FALLBACK_REQUESTED.value: "yellow",
    FundingOutcome.TIMEOUT.value: "yellow",
    FundingOutcome.RATE_LIMITED.value: "yellow",
    FundingOutcome.FAILED.value: "red",
    FundingOutcome.FALLBACK_FAILED.value: "red",
}


def _sui(amount: int | None) -> str:
    if amount is None:
        return "unknown"
    return f"{amount / 1_000_000_000:.4f} SUI"


def _print_manual_instructions(faucet_url: str, address: str) -> None:
    console.print("\n[bold]Manual faucet instructions:[/bold]")
    console.print(f"  1. Visit {faucet_url}")
    console.print(f"  2. Enter your address: {address}")
    console.print("  3. Request testnet tokens and wait for confirmation")
    console.print("  4. Re-run `merchdeploy fund` to check the balance")


def fund_cmd(
    keystore: Path = typer.Option(None, "--keystore", "-k", help="Path to the keystore file."),
    rpc_url: str = typer.Option(None, "--rpc-url", help="Ledger JSON-RPC endpoint."),
    faucet_url: str = typer.Option(None, "--faucet-url", help="Primary faucet base URL."),
    min_balance: int = typer.Option(
        None, "--min-balance", help="Balance threshold in the smallest coin unit."
    ),
) -> None:
    """Request testnet tokens for the deployer if its balance is low."""
    cfg = _shared.build_config(
        keystore_path=keystore,
        rpc_url=rpc_url,
        faucet_url=faucet_url,
        min_balance=min_balance,
    )

    try:
        with _shared.open_context(cfg) as context:
            result = FundStage().run_stage(context)
    except MerchDeployError as exc:
        _shared.fail("Funding failed", exc)

    status = result["status"]
    style = _STYLES.get(status, "white")
    lines = [
        f"[bold {style}]{status.replace('_', ' ')}[/bold {style}]",
        "",
        f"[bold]Address:[/bold]  {result['address']}",
        f"[bold]Before:[/bold]   {_sui(result.get('balance_before'))}",
    ]
    if result.get("balance_after") is not None:
        lines.append(f"[bold]After:[/bold]    {_sui(result['balance_after'])}")
    if result.get("tx_digest"):
        lines.append(f"[bold]Digest:[/bold]   {result['tx_digest']}")
    if result.get("fallback_digest"):
        lines.append(f"[bold]Fallback:[/bold] {result['fallback_digest']}")
    if result.get("attempts"):
        lines.append(f"[bold]Checks:[/bold]   {result['attempts']}")
    if result.get("error"):
        lines.append(f"[red]{escape(result['error'])}[/red]")
    if status not in (FundingOutcome.ALREADY_FUNDED.value, FundingOutcome.CONFIRMED.value):
        lines += ["", "[dim]Funding is advisory; you can still try to publish.[/dim]"]

    console.print(
        Panel("\n".join(lines), title="[bold]Funding[/bold]", border_style=style, padding=(1, 2))
    )
    if status == FundingOutcome.FALLBACK_FAILED.value:
        _print_manual_instructions(cfg.faucet_url, result["address"])
