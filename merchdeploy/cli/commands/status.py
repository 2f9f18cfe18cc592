"""``merchdeploy status`` — show the recorded deployment and its state."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from merchdeploy.cli import _shared
from merchdeploy.core.manifest_store import ManifestStore
from merchdeploy.errors import ConfigurationError
from merchdeploy.models.stages import DEFAULT_STAGE_DEFINITIONS, DeploymentState

console = Console()


def status_cmd(
    manifest: Path = typer.Option(None, "--manifest", "-m", help="Path to the deployment manifest."),
) -> None:
    """Print the manifest fields and which stages can run next."""
    cfg = _shared.build_config(manifest_path=manifest)
    store = ManifestStore(cfg.manifest_path)
    try:
        record = store.load()
    except ConfigurationError as exc:
        _shared.fail("Manifest error", exc)

    if record is None:
        console.print(f"[dim]No deployment recorded at {store.path}.[/dim]")
        state = DeploymentState.UNPUBLISHED
    else:
        table = Table(title=f"Deployment ({store.path})", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        for key, value in record.to_json_dict().items():
            table.add_row(key, str(value))
        console.print(table)
        state = record.state

    console.print(f"[bold]State:[/bold] {state.value}")
    stages = Table(title="Stages")
    stages.add_column("#", justify="right")
    stages.add_column("Stage")
    stages.add_column("Requires")
    stages.add_column("Ready", justify="center")
    for definition in DEFAULT_STAGE_DEFINITIONS:
        ready = state.at_least(definition.required_state)
        stages.add_row(
            str(definition.ordinal),
            definition.display_name,
            definition.required_field or "-",
            "[green]Yes[/green]" if ready else "[red]No[/red]",
        )
    console.print(stages)
