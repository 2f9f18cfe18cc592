"""``merchdeploy build`` — compile the Move package with the ``sui`` CLI."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from merchdeploy.cli import _shared
from merchdeploy.core.package_builder import build_package, list_artifacts
from merchdeploy.errors import BuildError

console = Console()


def build_cmd(
    project_root: Path = typer.Option(
        None, "--project-root", "-p", help="Directory containing Move.toml."
    ),
    build_dir: Path = typer.Option(None, "--build-dir", help="Compiled package directory."),
) -> None:
    """Run ``sui move build`` and list the produced artifacts."""
    cfg = _shared.build_config(project_root=project_root, build_dir=build_dir)

    console.print(f"[bold cyan]Building Move package in {cfg.project_root}...[/bold cyan]")
    try:
        build_package(cfg.project_root)
    except BuildError as exc:
        _shared.fail("Build failed", exc)

    output_dir = cfg.build_output_dir
    artifacts = list_artifacts(output_dir)
    table = Table(title=f"Build artifacts in {output_dir}")
    table.add_column("File", style="cyan")
    table.add_column("Size", justify="right")
    for path in artifacts:
        table.add_row(str(path), f"{(output_dir / path).stat().st_size:,} B")
    console.print(table)
    console.print(f"[bold green]Build complete[/bold green] ({len(artifacts)} files)")
