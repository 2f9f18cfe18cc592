"""Stage report models — outputs of the funding and verification stages."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FundingOutcome(str, Enum):
    ALREADY_FUNDED = "already_funded"
    CONFIRMED = "confirmed"
    FAILED = "failed"  # faucet transaction failed on-chain
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    FALLBACK_REQUESTED = "fallback_requested"
    FALLBACK_FAILED = "fallback_failed"


class FundingReport(BaseModel):
    """Output of the Funding Controller.

    ``attempts`` counts status checks made by the confirmation poll (zero
    when no poll ran).
    """

    model_config = ConfigDict(frozen=True)

    address: str
    outcome: FundingOutcome
    attempts: int = 0
    tx_digest: str | None = None
    fallback_digest: str | None = None
    balance_before: int | None = None
    balance_after: int | None = None
    error: str | None = None
    fallback_used: bool = False
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def funded(self) -> bool:
        return self.outcome in (FundingOutcome.ALREADY_FUNDED, FundingOutcome.CONFIRMED)


class VerificationOutcome(str, Enum):
    VERIFIED = "verified"
    PARTIAL = "partial"
    FAILED = "failed"


class VerificationReport(BaseModel):
    """Output of the Verification Engine."""

    model_config = ConfigDict(frozen=True)

    outcome: VerificationOutcome
    package_id: str | None = None
    package_found: bool = False
    init_tx: str | None = None
    init_status: str | None = None
    init_error: str | None = None
    marketplace_id: str | None = None
    marketplace_cap_id: str | None = None
    missing: list[str] = []
    balance: int | None = None
    coin_object_count: int | None = None
    marketplace_fields: dict[str, str] = {}
    message: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def fully_verified(self) -> bool:
        return self.outcome == VerificationOutcome.VERIFIED
