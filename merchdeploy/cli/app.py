"""Main Typer application — imports and registers all CLI commands.

Entry point: ``merchdeploy`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from merchdeploy import __version__
from merchdeploy.cli.commands.build import build_cmd
from merchdeploy.cli.commands.deploy import deploy_cmd
from merchdeploy.cli.commands.doctor import doctor_cmd
from merchdeploy.cli.commands.fund import fund_cmd
from merchdeploy.cli.commands.initialize import initialize_cmd
from merchdeploy.cli.commands.menu import menu_cmd
from merchdeploy.cli.commands.publish import publish_cmd
from merchdeploy.cli.commands.status import status_cmd
from merchdeploy.cli.commands.verify import verify_cmd
from merchdeploy.config import config

app = typer.Typer(
    name="merchdeploy",
    help="Deploy and verify the anime merchandise marketplace contract.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="fund", help="Request faucet tokens for the deployer.")(fund_cmd)
app.command(name="build", help="Compile the Move package.")(build_cmd)
app.command(name="publish", help="Publish the compiled package.")(publish_cmd)
app.command(name="initialize", help="Initialize the marketplace.")(initialize_cmd)
app.command(name="deploy", help="Publish, then initialize.")(deploy_cmd)
app.command(name="verify", help="Verify the deployment on the ledger.")(verify_cmd)
app.command(name="status", help="Show the recorded deployment.")(status_cmd)
app.command(name="doctor", help="Check the local environment.")(doctor_cmd)
app.command(name="menu", help="Interactive read-only explorer.")(menu_cmd)


def setup_logging(level: str) -> None:
    """Send log records through Rich at *level*."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=False, show_path=False)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"merchdeploy {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        config.log_level,
        "--log-level",
        "-L",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Deployment pipeline for the anime merchandise marketplace."""
    if log_level.upper() not in logging.getLevelNamesMapping():
        raise typer.BadParameter(f"unknown log level {log_level!r}", param_hint="--log-level")
    setup_logging(log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
