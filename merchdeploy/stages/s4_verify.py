"""Stage 4 — Verification.

Confirms the deployment on the ledger and fills in the marketplace object
ids:

1. the published package exists (the ledger returns content for it);
2. the marketplace init transaction executed successfully;
3. the init transaction created a ``Marketplace`` object and a
   ``MarketplaceCap`` object, identified by substring match on their type.

Checks 1 and 2 produce a ``failed`` report and leave the manifest untouched.
Whatever ids check 3 finds are merged into the manifest; the outcome is
``verified`` only when both were found. Balance and marketplace field reads
are informational and never change the outcome.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from merchdeploy.errors import NetworkError
from merchdeploy.models.ledger import ObjectChange, TransactionStatus
from merchdeploy.models.reports import VerificationOutcome, VerificationReport
from merchdeploy.stages.base import BaseStage, StageContext

logger = logging.getLogger(__name__)

MARKETPLACE_FIELDS = ("total_items", "total_nfts")


def match_created_objects(
    changes: Iterable[ObjectChange],
    marketplace_marker: str,
    capability_marker: str,
) -> tuple[str | None, str | None]:
    """Return ``(marketplace_id, capability_id)`` from *changes*.

    Only ``created`` entries are considered and the first match per category
    wins. When the capability marker contains the marketplace marker (as
    ``MarketplaceCap`` contains ``Marketplace``), an object that matches the
    capability marker is never taken as the marketplace, so the result does
    not depend on the order the ledger lists the objects in.
    """
    marketplace_id: str | None = None
    capability_id: str | None = None
    shadowed = marketplace_marker in capability_marker

    for change in changes:
        if change.type != "created":
            continue
        object_type = change.object_type or ""
        if capability_marker in object_type:
            if capability_id is None:
                capability_id = change.object_id
            if shadowed:
                continue
        if marketplace_marker in object_type and marketplace_id is None:
            marketplace_id = change.object_id

    return marketplace_id, capability_id


class VerifyStage(BaseStage):
    """Stage 4: check the package, the init transaction and its objects."""

    @property
    def stage_id(self) -> str:
        return "s4_verify"

    @property
    def display_name(self) -> str:
        return "Verification"

    def execute(self, context: StageContext) -> dict[str, Any]:
        report = self.verify(context)
        return {"status": report.outcome.value, **report.model_dump(mode="json")}

    def verify(self, context: StageContext) -> VerificationReport:
        cfg = context.config
        gateway = context.gateway
        manifest = context.manifest_store.require()
        package_id = manifest.package_id
        init_tx = manifest.marketplace_init_tx

        # 1. package
        try:
            package = gateway.get_object(package_id) if package_id else None
        except NetworkError as exc:
            return self._failed(package_id, init_tx, f"Package lookup failed: {exc}")
        if package is None:
            return self._failed(
                package_id, init_tx, f"Package {package_id} not found on the ledger"
            )
        logger.info("Package %s found", package_id)

        # 2. init transaction
        try:
            result = gateway.get_transaction_status(init_tx)
        except NetworkError as exc:
            return self._failed(
                package_id,
                init_tx,
                f"Init transaction lookup failed: {exc}",
                package_found=True,
            )
        if result.status != TransactionStatus.SUCCESS:
            logger.error(
                "Init transaction %s is %s: %s", init_tx, result.status.value, result.error
            )
            return self._failed(
                package_id,
                init_tx,
                f"Init transaction {init_tx} is {result.status.value}",
                package_found=True,
                init_status=result.status.value,
                init_error=result.error,
            )

        # 3. created objects
        marketplace_id, cap_id = match_created_objects(
            result.created_objects(),
            cfg.marketplace_type_marker,
            cfg.capability_type_marker,
        )
        if marketplace_id or cap_id:
            context.manifest_store.update(
                marketplace_id=marketplace_id, marketplace_cap_id=cap_id
            )

        missing = []
        if not marketplace_id:
            missing.append("marketplaceId")
        if not cap_id:
            missing.append("marketplaceCapId")

        # informational reads
        balance = coin_count = None
        try:
            info = gateway.get_balance(manifest.deployer_address, cfg.coin_type)
            balance, coin_count = info.total_balance, info.coin_object_count
        except NetworkError as exc:
            logger.warning("Could not fetch deployer balance: %s", exc)

        fields = self._marketplace_fields(context, marketplace_id)
        if cap_id and self._readable(context, cap_id) is False:
            logger.warning("Capability object %s is not readable", cap_id)

        if missing:
            outcome = VerificationOutcome.PARTIAL
            message = "Missing " + ", ".join(missing)
        else:
            outcome = VerificationOutcome.VERIFIED
            message = "Deployment verified"

        return VerificationReport(
            outcome=outcome,
            package_id=package_id,
            package_found=True,
            init_tx=init_tx,
            init_status=result.status.value,
            marketplace_id=marketplace_id,
            marketplace_cap_id=cap_id,
            missing=missing,
            balance=balance,
            coin_object_count=coin_count,
            marketplace_fields=fields,
            message=message,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _failed(
        package_id: str | None,
        init_tx: str | None,
        message: str,
        **extra: Any,
    ) -> VerificationReport:
        logger.error(message)
        return VerificationReport(
            outcome=VerificationOutcome.FAILED,
            package_id=package_id,
            init_tx=init_tx,
            message=message,
            **extra,
        )

    @staticmethod
    def _marketplace_fields(
        context: StageContext, marketplace_id: str | None
    ) -> dict[str, str]:
        if not marketplace_id:
            return {}
        try:
            data = context.gateway.get_object(marketplace_id)
        except NetworkError as exc:
            logger.warning("Could not read marketplace %s: %s", marketplace_id, exc)
            return {}
        if data is None:
            return {}
        raw = (data.get("content") or {}).get("fields") or {}
        return {name: str(raw[name]) for name in MARKETPLACE_FIELDS if name in raw}

    @staticmethod
    def _readable(context: StageContext, object_id: str) -> bool | None:
        try:
            return context.gateway.get_object(object_id) is not None
        except NetworkError:
            return None
