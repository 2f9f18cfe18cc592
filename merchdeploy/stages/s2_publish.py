"""Stage 2 — Publish.

Publishes the compiled Move modules in one transaction that also hands the
package's UpgradeCap to the deployer. The package id is read from the
``published`` entry of the transaction's object changes; there is no other
source of truth for it.

Outcomes:
    ``published``       — manifest created (any previous file replaced).
    ``no_package_id``   — the transaction succeeded but reported no
                          ``published`` change; no manifest is written and
                          initialization should be skipped.

Submission and on-chain failures propagate and abort the run.
"""

from __future__ import annotations

import logging
from typing import Any

from merchdeploy.core.identity import load_or_create
from merchdeploy.core.package_builder import load_modules
from merchdeploy.errors import ConfigurationError, NetworkError
from merchdeploy.models.ledger import TransactionBlock
from merchdeploy.models.manifest import DeploymentManifest
from merchdeploy.stages.base import BaseStage, StageContext

logger = logging.getLogger(__name__)


class PublishStage(BaseStage):
    """Stage 2: publish the package and claim its UpgradeCap."""

    @property
    def stage_id(self) -> str:
        return "s2_publish"

    @property
    def display_name(self) -> str:
        return "Publish"

    def execute(self, context: StageContext) -> dict[str, Any]:
        cfg = context.config
        keypair = load_or_create(cfg.keystore_path, persist=False)
        if keypair is None:
            raise ConfigurationError(
                f"No keypair available from {cfg.keystore_path}"
            )
        logger.info("Deployer address: %s", keypair.address)

        modules = load_modules(cfg.bytecode_dir)
        self._warn_on_low_balance(context, keypair.address)

        tx_block = TransactionBlock.publish(
            modules,
            gas_budget=cfg.gas_budget,
            dependencies=cfg.publish_dependencies,
        )
        result = context.gateway.submit_transaction(keypair, tx_block)

        package_id = result.published_package_id()
        if not package_id:
            logger.warning(
                "Transaction %s reported no published package; skipping manifest",
                result.digest,
            )
            return {"status": "no_package_id", "digest": result.digest}

        manifest = DeploymentManifest(
            package_id=package_id,
            deployer_address=keypair.address,
            network=cfg.network,
        )
        context.manifest_store.create(manifest)
        logger.info("Package %s published in %s", package_id, result.digest)
        return {
            "status": "published",
            "package_id": package_id,
            "digest": result.digest,
            "deployer_address": keypair.address,
        }

    @staticmethod
    def _warn_on_low_balance(context: StageContext, address: str) -> None:
        cfg = context.config
        try:
            balance = context.gateway.get_balance(address, cfg.coin_type)
        except NetworkError as exc:
            logger.warning("Could not fetch balance, proceeding with deployment: %s", exc)
            return
        if balance.total_balance < cfg.min_balance:
            logger.warning(
                "Low balance (%d < %d). Run `merchdeploy fund` if publishing fails.",
                balance.total_balance,
                cfg.min_balance,
            )
