"""Abstract base stage with an enforced lifecycle.

Every concrete stage inherits from BaseStage and implements only
``execute()``. The ``run_stage()`` wrapper is **not overridable** — it
enforces the canonical ordering:

    validate_preconditions -> execute -> log outcome

Preconditions are read off the deployment manifest: each stage declares the
``DeploymentState`` it needs, and a stage run too early reports the missing
field and stops instead of guessing.
"""

from __future__ import annotations

import abc
import logging
import time
from collections.abc import Callable
from typing import Any, final

import httpx

from merchdeploy.bridge.faucet import FaucetClient
from merchdeploy.bridge.ledger_gateway import LedgerGateway
from merchdeploy.config import DeployConfig
from merchdeploy.core.manifest_store import ManifestStore
from merchdeploy.errors import MerchDeployError
from merchdeploy.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    DeploymentState,
    StageDefinition,
)

logger = logging.getLogger(__name__)


class StagePreconditionError(MerchDeployError):
    """Raised when the deployment has not reached the state a stage needs."""


class StageExecutionError(MerchDeployError):
    """Raised when a stage's execute() method fails."""


class StageContext:
    """Everything a stage needs for one process invocation.

    Owns one ``httpx.Client`` shared by the gateway and both faucets; use
    as a context manager (or call ``close()``) to release it.

    Parameters
    ----------
    config:
        Deployment configuration.
    client:
        Optional ``httpx.Client``. Tests pass one built on
        ``httpx.MockTransport``; a context that creates its own closes it.
    sleep:
        Sleep function for the faucet confirmation poll.
    """

    def __init__(
        self,
        config: DeployConfig,
        *,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(config.http_timeout_seconds)
        )
        self.gateway = LedgerGateway(config.rpc_url, client=self._client)
        self.primary_faucet = FaucetClient(config.faucet_url, client=self._client)
        self.fallback_faucet: FaucetClient | None = (
            FaucetClient(config.fallback_faucet_url, client=self._client)
            if config.fallback_faucet_url
            else None
        )
        self.manifest_store = ManifestStore(config.manifest_path)
        self.sleep = sleep

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> StageContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


_DEFINITIONS: dict[str, StageDefinition] = {
    d.stage_id: d for d in DEFAULT_STAGE_DEFINITIONS
}


class BaseStage(abc.ABC):
    """Abstract base for all pipeline stages.

    Subclasses **must** implement:
        * ``stage_id``   — unique identifier (e.g. ``"s2_publish"``).
        * ``display_name`` — human-readable name for progress output.
        * ``execute(context)`` — the stage's core logic.

    Subclasses **must not** override ``run_stage()``.
    """

    # ------------------------------------------------------------------
    # Abstract interface: subclasses implement these
    # ------------------------------------------------------------------

    @property
    @abc.abstractmethod
    def stage_id(self) -> str:
        """Unique stage identifier (e.g. ``'s2_publish'``)."""
        ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str:
        """Human-readable display name."""
        ...

    @abc.abstractmethod
    def execute(self, context: StageContext) -> dict[str, Any]:
        """Execute the stage's core logic.

        Returns a structured result dict with at least a ``status`` key.
        """
        ...

    @property
    def definition(self) -> StageDefinition | None:
        return _DEFINITIONS.get(self.stage_id)

    # ------------------------------------------------------------------
    # Lifecycle: NOT overridable
    # ------------------------------------------------------------------

    @final
    def run_stage(self, context: StageContext) -> dict[str, Any]:
        """Execute the full stage lifecycle.  **Do not override.**

        Raises ``StagePreconditionError`` when the manifest is not far
        enough along, and ``StageExecutionError`` (chained to the original
        error) when ``execute()`` fails.
        """
        self.validate_preconditions(context)

        logger.info("%s [%s] starting", self.display_name, self.stage_id)
        try:
            result = self.execute(context)
        except Exception as exc:
            logger.error(
                "%s [%s] execution failed: %s",
                self.display_name,
                self.stage_id,
                exc,
            )
            raise StageExecutionError(
                f"Stage {self.stage_id} failed: {exc}"
            ) from exc

        logger.info(
            "%s [%s] finished with status=%s",
            self.display_name,
            self.stage_id,
            result.get("status", "unknown"),
        )
        return result

    @final
    def validate_preconditions(self, context: StageContext) -> None:
        """Ensure the manifest has reached this stage's required state."""
        definition = self.definition
        if definition is None or definition.required_state == DeploymentState.UNPUBLISHED:
            return

        manifest = context.manifest_store.load()
        if manifest is None:
            raise StagePreconditionError(
                f"Cannot run {self.stage_id}: no prior deployment "
                f"({context.manifest_store.path} not found)"
            )

        state = manifest.state
        if not state.at_least(definition.required_state):
            raise StagePreconditionError(
                f"Cannot run {self.stage_id}: deployment is {state.value}, "
                f"requires {definition.required_state.value} "
                f"({definition.required_field} missing from manifest)"
            )

    # ------------------------------------------------------------------
    # Repr
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_id={self.stage_id!r}>"
