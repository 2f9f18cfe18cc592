"""Move package build helpers.

Wraps the ``sui`` CLI for ``sui move build`` and loads the compiled
``.mv`` bytecode modules that the Publish stage submits.
"""

from __future__ import annotations

import base64
import logging
import shutil
import subprocess
from pathlib import Path

from merchdeploy.errors import BuildError, ConfigurationError

logger = logging.getLogger(__name__)

SUI_INSTALL_HINT = (
    "cargo install --locked --git https://github.com/MystenLabs/sui.git --branch devnet sui"
)


def find_sui_cli() -> tuple[bool, str]:
    """Check if the ``sui`` binary is available on PATH.

    Returns ``(found, detail)`` where *detail* is the path and version, or
    the reason it was not found.
    """
    sui_path = shutil.which("sui")
    if not sui_path:
        return False, "not found on PATH"
    try:
        result = subprocess.run(
            [sui_path, "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.SubprocessError, OSError):
        return True, f"{sui_path} (version check failed)"
    version = result.stdout.strip() or result.stderr.strip() or "unknown"
    return True, f"{sui_path} ({version})"


def build_package(project_root: Path) -> None:
    """Run ``sui move build`` in *project_root*.

    Output streams straight to the terminal. Raises ``BuildError`` if the
    CLI is missing or the build fails.
    """
    sui_path = shutil.which("sui")
    if not sui_path:
        raise BuildError(f"Sui CLI not found. Install it with: {SUI_INSTALL_HINT}")
    root = Path(project_root)
    if not (root / "Move.toml").exists():
        raise BuildError(f"Move.toml not found in {root}")

    logger.info("Running sui move build in %s", root)
    try:
        subprocess.run([sui_path, "move", "build"], cwd=root, check=True)
    except subprocess.CalledProcessError as exc:
        raise BuildError(f"sui move build exited with code {exc.returncode}") from exc
    except OSError as exc:
        raise BuildError(f"Could not run sui move build: {exc}") from exc


def list_artifacts(build_dir: Path) -> list[Path]:
    """Return every file under *build_dir*, relative to it, sorted."""
    root = Path(build_dir)
    if not root.is_dir():
        return []
    return sorted(p.relative_to(root) for p in root.rglob("*") if p.is_file())


def load_modules(bytecode_dir: Path) -> list[str]:
    """Read every ``.mv`` module in *bytecode_dir* as base64, sorted by name.

    Raises ``ConfigurationError`` when there is nothing to publish.
    """
    root = Path(bytecode_dir)
    modules = sorted(root.glob("*.mv")) if root.is_dir() else []
    if not modules:
        raise ConfigurationError(
            f"No compiled modules found in {root}. Run `merchdeploy build` first."
        )
    logger.info("Loaded %d bytecode module(s) from %s", len(modules), root)
    return [base64.b64encode(p.read_bytes()).decode("ascii") for p in modules]
