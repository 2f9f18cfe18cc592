"""Pipeline state model — derived from manifest field presence.

There is no stored state tag. The state of a deployment is read off which
manifest fields are set:

    UNPUBLISHED -> PUBLISHED (packageId)
                -> INITIALIZED (marketplaceInitTx)
                -> VERIFIED (marketplaceId & marketplaceCapId)
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class DeploymentState(str, Enum):
    """Ordered pipeline states."""

    UNPUBLISHED = "unpublished"
    PUBLISHED = "published"
    INITIALIZED = "initialized"
    VERIFIED = "verified"

    @property
    def rank(self) -> int:
        return _STATE_ORDER.index(self)

    def at_least(self, other: DeploymentState) -> bool:
        return self.rank >= other.rank


_STATE_ORDER: list[DeploymentState] = [
    DeploymentState.UNPUBLISHED,
    DeploymentState.PUBLISHED,
    DeploymentState.INITIALIZED,
    DeploymentState.VERIFIED,
]


class StageDefinition(BaseModel):
    """Defines a pipeline stage and the state it requires to run."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    ordinal: int
    required_state: DeploymentState
    # Field whose absence is reported when the precondition is not met.
    required_field: str = ""


DEFAULT_STAGE_DEFINITIONS: list[StageDefinition] = [
    StageDefinition(
        stage_id="s1_fund",
        display_name="Funding",
        ordinal=1,
        required_state=DeploymentState.UNPUBLISHED,
    ),
    StageDefinition(
        stage_id="s2_publish",
        display_name="Publish",
        ordinal=2,
        required_state=DeploymentState.UNPUBLISHED,
    ),
    StageDefinition(
        stage_id="s3_initialize",
        display_name="Marketplace Initialization",
        ordinal=3,
        required_state=DeploymentState.PUBLISHED,
        required_field="packageId",
    ),
    StageDefinition(
        stage_id="s4_verify",
        display_name="Verification",
        ordinal=4,
        required_state=DeploymentState.INITIALIZED,
        required_field="marketplaceInitTx",
    ),
]
