"""Stage 1 — Funding.

Loads (or generates and saves) the deployer keypair, then runs the Funding
Controller against the configured faucets. Every funding outcome is
advisory: the stage only fails when no keypair is available.
"""

from __future__ import annotations

import logging
from typing import Any

from merchdeploy.core.funding import FundingController
from merchdeploy.core.identity import load_or_create
from merchdeploy.errors import ConfigurationError
from merchdeploy.stages.base import BaseStage, StageContext

logger = logging.getLogger(__name__)


class FundStage(BaseStage):
    """Stage 1: make sure the deployer holds enough gas."""

    @property
    def stage_id(self) -> str:
        return "s1_fund"

    @property
    def display_name(self) -> str:
        return "Funding"

    def execute(self, context: StageContext) -> dict[str, Any]:
        cfg = context.config
        keypair = load_or_create(cfg.keystore_path, persist=True)
        if keypair is None:
            raise ConfigurationError(
                f"No keypair available from {cfg.keystore_path}"
            )

        controller = FundingController(
            context.gateway,
            context.primary_faucet,
            context.fallback_faucet,
            coin_type=cfg.coin_type,
            min_balance=cfg.min_balance,
            poll_attempts=cfg.faucet_poll_attempts,
            poll_interval=cfg.faucet_poll_interval_seconds,
            sleep=context.sleep,
        )
        report = controller.ensure_funded(keypair.address)
        return {"status": report.outcome.value, **report.model_dump(mode="json")}
