"""Deployment manifest model (append-only per field).

The manifest is the only state that crosses process boundaries besides the
keystore. It is created by the Publish stage and afterwards only ever
supplemented through ``merge()``: a set field is never cleared and never
silently replaced.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from merchdeploy.errors import ManifestConflictError
from merchdeploy.models.stages import DeploymentState

MANIFEST_SCHEMA_VERSION = 1


class DeploymentManifest(BaseModel):
    """Persisted record of pipeline progress.

    Serialized with camelCase keys (``packageId``, ``marketplaceInitTx``...)
    so files written by earlier tooling load unchanged. Unknown keys are kept
    and written back.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    deployer_address: str
    network: str
    package_id: str | None = None
    marketplace_init_tx: str | None = None
    marketplace_id: str | None = None
    marketplace_cap_id: str | None = None
    deployed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    schema_version: int = MANIFEST_SCHEMA_VERSION

    @property
    def state(self) -> DeploymentState:
        """Pipeline state derived from which fields are present."""
        if self.marketplace_id and self.marketplace_cap_id:
            return DeploymentState.VERIFIED
        if self.marketplace_init_tx:
            return DeploymentState.INITIALIZED
        if self.package_id:
            return DeploymentState.PUBLISHED
        return DeploymentState.UNPUBLISHED

    def merge(self, **updates: Any) -> DeploymentManifest:
        """Return a copy with *updates* applied under the append-only rule.

        Empty values (``None`` or ``""``) are ignored, so a merge can never
        clear a field. Setting a field to the value it already holds is a
        no-op. Changing a field that already holds a different value raises
        ``ManifestConflictError``.
        """
        applied: dict[str, Any] = {}
        for name, value in updates.items():
            if name not in type(self).model_fields:
                raise ValueError(f"Unknown manifest field: {name!r}")
            if value is None or value == "":
                continue
            current = getattr(self, name)
            if current not in (None, ""):
                if current == value:
                    continue
                raise ManifestConflictError(
                    f"Manifest field {to_camel(name)} is already set to "
                    f"{current!r}; refusing to replace it with {value!r}"
                )
            applied[name] = value
        if not applied:
            return self
        return self.model_copy(update=applied)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk shape (camelCase, unset optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
