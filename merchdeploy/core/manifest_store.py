"""File-backed store for the deployment manifest.

The manifest file is read then fully rewritten; there are no partial writes
and no locking. Concurrent stages against the same file are unsupported.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from merchdeploy.errors import ConfigurationError
from merchdeploy.models.manifest import DeploymentManifest

logger = logging.getLogger(__name__)


class ManifestStore:
    """Reads and writes the ``DeploymentManifest`` JSON file.

    Parameters
    ----------
    path:
        Location of the manifest file. Parent directories are created on
        first write.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(self) -> DeploymentManifest | None:
        """Return the stored manifest, or ``None`` if there is no file.

        Raises ``ConfigurationError`` if the file exists but is not a valid
        manifest.
        """
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return DeploymentManifest.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            raise ConfigurationError(
                f"Deployment manifest {self._path} is unreadable: {exc}"
            ) from exc

    def require(self) -> DeploymentManifest:
        """Return the stored manifest or fail with "no prior deployment"."""
        manifest = self.load()
        if manifest is None:
            raise ConfigurationError(
                f"No prior deployment: {self._path} not found. Run `merchdeploy publish` first."
            )
        return manifest

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def write(self, manifest: DeploymentManifest) -> DeploymentManifest:
        """Rewrite the whole file with *manifest*."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(manifest.to_json_dict(), indent=2) + "\n",
            encoding="utf-8",
        )
        logger.debug("Manifest written to %s", self._path)
        return manifest

    def create(self, manifest: DeploymentManifest) -> DeploymentManifest:
        """Start a new deployment record, replacing any previous file."""
        if self._path.exists():
            logger.warning("Replacing previous deployment manifest at %s", self._path)
        return self.write(manifest)

    def update(self, **fields: Any) -> DeploymentManifest:
        """Read-modify-write: merge *fields* into the stored manifest.

        Uses ``DeploymentManifest.merge`` so existing fields are preserved
        and never cleared.
        """
        current = self.require()
        merged = current.merge(**fields)
        if merged is current:
            return current
        return self.write(merged)
