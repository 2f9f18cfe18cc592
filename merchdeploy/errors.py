"""Error taxonomy shared by every pipeline stage.

Propagation policy:
    - ``ConfigurationError``, ``SubmissionError`` and ``ExecutionError`` are
      fatal to the stage that raised them (the process exits non-zero).
    - ``NetworkError`` is usually advisory: balance checks and informational
      reads log it and carry on.
    - ``RateLimitError`` and ``FundingTimeoutError`` are reported by the
      Funding Controller and never abort a run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from merchdeploy.models.ledger import TransactionResult


class MerchDeployError(RuntimeError):
    """Base class for all merchdeploy errors."""


class ConfigurationError(MerchDeployError):
    """A keystore, manifest or build artifact the stage needs is missing or unreadable."""


class NetworkError(MerchDeployError):
    """Transport failure talking to the ledger or a faucet."""


class SubmissionError(MerchDeployError):
    """The ledger refused to build or execute a transaction."""


class ExecutionError(MerchDeployError):
    """The ledger executed a transaction but it failed on-chain.

    ``result`` carries the full ``TransactionResult`` so callers can inspect
    the digest and the on-chain error message.
    """

    def __init__(self, message: str, result: TransactionResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class RateLimitError(MerchDeployError):
    """A faucet answered HTTP 429."""


class FundingTimeoutError(MerchDeployError):
    """The faucet confirmation poll ran out of attempts."""


class ManifestConflictError(MerchDeployError):
    """A merge tried to change a manifest field that is already set."""


class BuildError(MerchDeployError):
    """The Move package could not be built."""
