"""merchdeploy data models — all Pydantic v2, all frozen (immutable)."""

from merchdeploy.models.ledger import (
    Balance,
    ObjectChange,
    TransactionBlock,
    TransactionKind,
    TransactionResult,
    TransactionStatus,
)
from merchdeploy.models.manifest import MANIFEST_SCHEMA_VERSION, DeploymentManifest
from merchdeploy.models.reports import (
    FundingOutcome,
    FundingReport,
    VerificationOutcome,
    VerificationReport,
)
from merchdeploy.models.stages import (
    DEFAULT_STAGE_DEFINITIONS,
    DeploymentState,
    StageDefinition,
)

__all__ = [
    # ledger
    "Balance",
    "ObjectChange",
    "TransactionBlock",
    "TransactionKind",
    "TransactionResult",
    "TransactionStatus",
    # manifest
    "MANIFEST_SCHEMA_VERSION",
    "DeploymentManifest",
    # reports
    "FundingOutcome",
    "FundingReport",
    "VerificationOutcome",
    "VerificationReport",
    # stages
    "DEFAULT_STAGE_DEFINITIONS",
    "DeploymentState",
    "StageDefinition",
]
