"""``merchdeploy doctor`` — check the local environment before deploying."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from merchdeploy.cli import _shared
from merchdeploy.core.identity import load
from merchdeploy.core.manifest_store import ManifestStore
from merchdeploy.core.package_builder import SUI_INSTALL_HINT, find_sui_cli
from merchdeploy.errors import ConfigurationError, NetworkError

console = Console()

_OK = "[green]OK[/green]"
_WARN = "[yellow]WARN[/yellow]"
_FAIL = "[red]FAIL[/red]"


def doctor_cmd(
    keystore: Path = typer.Option(None, "--keystore", "-k", help="Path to the keystore file."),
    manifest: Path = typer.Option(None, "--manifest", "-m", help="Path to the deployment manifest."),
    project_root: Path = typer.Option(
        None, "--project-root", "-p", help="Directory containing Move.toml."
    ),
    rpc_url: str = typer.Option(None, "--rpc-url", help="Ledger JSON-RPC endpoint."),
) -> None:
    """Check the Sui CLI, keystore, compiled modules, manifest and RPC endpoint.

    Exits 1 if any check fails; warnings do not change the exit status.
    """
    cfg = _shared.build_config(
        keystore_path=keystore,
        manifest_path=manifest,
        project_root=project_root,
        rpc_url=rpc_url,
    )
    table = Table(title="merchdeploy doctor")
    table.add_column("Check", style="bold")
    table.add_column("Result", justify="center")
    table.add_column("Detail")
    failed = False

    found, detail = find_sui_cli()
    table.add_row("Sui CLI", _OK if found else _WARN, detail if found else SUI_INSTALL_HINT)

    address = None
    try:
        address = load(cfg.keystore_path).address
        table.add_row("Keystore", _OK, f"{cfg.keystore_path} ({address})")
    except ConfigurationError as exc:
        table.add_row("Keystore", _WARN, f"{exc}; `merchdeploy fund` will create one")

    modules = sorted(cfg.bytecode_dir.glob("*.mv")) if cfg.bytecode_dir.is_dir() else []
    table.add_row(
        "Bytecode",
        _OK if modules else _WARN,
        f"{len(modules)} module(s) in {cfg.bytecode_dir}",
    )

    try:
        record = ManifestStore(cfg.manifest_path).load()
        if record is None:
            table.add_row("Manifest", _OK, f"none yet at {cfg.manifest_path}")
        else:
            table.add_row("Manifest", _OK, f"{cfg.manifest_path} ({record.state.value})")
    except ConfigurationError as exc:
        table.add_row("Manifest", _FAIL, str(exc))
        failed = True

    with _shared.open_context(cfg) as context:
        probe = address or "0x" + "0" * 64
        try:
            balance = context.gateway.get_balance(probe, cfg.coin_type)
            detail = cfg.rpc_url
            if address:
                detail += f" (balance {balance.total_balance / 1_000_000_000:.4f} SUI)"
            table.add_row("RPC", _OK, detail)
        except NetworkError as exc:
            table.add_row("RPC", _FAIL, str(exc))
            failed = True

    console.print(table)
    if failed:
        raise typer.Exit(code=1)
