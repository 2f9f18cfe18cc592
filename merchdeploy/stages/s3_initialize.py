"""Stage 3 — Marketplace initialization.

Calls the contract's parameterless init entry point on the published package
and records the transaction digest in the manifest (read-modify-write, other
fields untouched). A manifest that already records an init transaction is
left alone, so re-running the stage is safe.
"""

from __future__ import annotations

import logging
from typing import Any

from merchdeploy.core.identity import load
from merchdeploy.models.ledger import TransactionBlock
from merchdeploy.stages.base import BaseStage, StageContext

logger = logging.getLogger(__name__)


class InitializeStage(BaseStage):
    """Stage 3: invoke ``<package>::<module>::init``."""

    @property
    def stage_id(self) -> str:
        return "s3_initialize"

    @property
    def display_name(self) -> str:
        return "Marketplace Initialization"

    def execute(self, context: StageContext) -> dict[str, Any]:
        cfg = context.config
        manifest = context.manifest_store.require()
        if manifest.marketplace_init_tx:
            logger.info(
                "Marketplace already initialized in %s", manifest.marketplace_init_tx
            )
            return {
                "status": "already_initialized",
                "package_id": manifest.package_id,
                "digest": manifest.marketplace_init_tx,
            }

        keypair = load(cfg.keystore_path)
        if keypair.address != manifest.deployer_address:
            logger.warning(
                "Keystore address %s differs from deployer %s recorded in the manifest",
                keypair.address,
                manifest.deployer_address,
            )

        tx_block = TransactionBlock.move_call(
            manifest.package_id,
            cfg.module_name,
            cfg.init_function,
            gas_budget=cfg.gas_budget,
        )
        logger.info("Calling %s", tx_block.target)
        result = context.gateway.submit_transaction(keypair, tx_block)

        context.manifest_store.update(marketplace_init_tx=result.digest)
        return {
            "status": "initialized",
            "package_id": manifest.package_id,
            "digest": result.digest,
        }
