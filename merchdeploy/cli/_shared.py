"""Helpers shared by the CLI commands: config overrides, context, errors."""

from __future__ import annotations

import logging
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from merchdeploy.config import DeployConfig
from merchdeploy.stages import StageContext

logger = logging.getLogger(__name__)

console = Console()


def build_config(**overrides: Any) -> DeployConfig:
    """Return a ``DeployConfig`` with every non-``None`` override applied.

    Command-line values win over ``MERCHDEPLOY_*`` variables and ``.env``.
    """
    return DeployConfig(**{k: v for k, v in overrides.items() if v is not None})


def open_context(cfg: DeployConfig) -> StageContext:
    """Build the stage context for one command invocation."""
    return StageContext(cfg)


def fail(title: str, exc: BaseException) -> NoReturn:
    """Print *exc* (and its cause) and exit with status 1."""
    cause = exc.__cause__
    detail = escape(str(exc))
    if cause is not None:
        detail += f"\n[dim]caused by {type(cause).__name__}[/dim]"
    console.print(f"[bold red]{title}:[/bold red] {detail}")
    raise typer.Exit(code=1)
