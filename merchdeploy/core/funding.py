"""Funding controller — make sure the deployer can pay for deployment.

Algorithm:

1. Balance at or above the threshold -> done, no faucet request.
2. Ask the primary faucet.
   - 429 -> report and stop. Rate limiting is terminal for the run: no
     retry and no fallback.
   - unreachable / error -> step 4.
3. Primary returned a digest -> poll its status at a fixed interval for a
   bounded number of checks. ``success`` or ``failure`` ends the poll; an
   exhausted budget is reported as a timeout and is not fatal. The faucet
   request itself is never repeated.
4. Primary unusable or no digest -> exactly one request to the fallback
   faucet. Its answer is reported, not polled.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from merchdeploy.errors import FundingTimeoutError, NetworkError, RateLimitError
from merchdeploy.models.ledger import TransactionResult, TransactionStatus
from merchdeploy.models.reports import FundingOutcome, FundingReport

if TYPE_CHECKING:
    from merchdeploy.bridge.faucet import FaucetClient
    from merchdeploy.bridge.ledger_gateway import LedgerGateway

logger = logging.getLogger(__name__)


class FundingController:
    """Drives the faucet flow for one address.

    Parameters
    ----------
    gateway:
        Ledger gateway used for balance checks and status polling.
    primary:
        The faucet tried first.
    fallback:
        The faucet tried once when the primary is unusable. ``None``
        disables the fallback path.
    coin_type:
        Coin whose balance is checked.
    min_balance:
        Threshold (smallest unit) at which no funding is requested.
    poll_attempts, poll_interval:
        Confirmation poll budget: number of status checks and seconds
        between them.
    sleep:
        Sleep function used between checks (injected by tests).
    """

    def __init__(
        self,
        gateway: LedgerGateway,
        primary: FaucetClient,
        fallback: FaucetClient | None = None,
        *,
        coin_type: str,
        min_balance: int,
        poll_attempts: int = 30,
        poll_interval: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if poll_attempts < 1:
            raise ValueError("poll_attempts must be at least 1")
        self._gateway = gateway
        self._primary = primary
        self._fallback = fallback
        self._coin_type = coin_type
        self._min_balance = min_balance
        self._poll_attempts = poll_attempts
        self._poll_interval = poll_interval
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ensure_funded(self, address: str) -> FundingReport:
        """Run the funding flow for *address* and report what happened."""
        balance_before = self._current_balance(address)
        if balance_before is not None and balance_before >= self._min_balance:
            logger.info(
                "Balance %d >= %d; no funding needed", balance_before, self._min_balance
            )
            return FundingReport(
                address=address,
                outcome=FundingOutcome.ALREADY_FUNDED,
                balance_before=balance_before,
            )

        primary_error: str | None = None
        tx_digest: str | None = None
        try:
            grant = self._primary.request_tokens(address)
            tx_digest = grant.tx_digest
        except RateLimitError as exc:
            logger.warning("%s. Please wait before trying again.", exc)
            return FundingReport(
                address=address,
                outcome=FundingOutcome.RATE_LIMITED,
                balance_before=balance_before,
                error=str(exc),
            )
        except NetworkError as exc:
            logger.warning("Primary faucet request failed: %s", exc)
            primary_error = str(exc)

        if tx_digest:
            return self._confirm(address, tx_digest, balance_before)

        if primary_error is None:
            logger.warning("Primary faucet returned no transaction digest")
        return self._request_fallback(address, balance_before, primary_error)

    def wait_for_confirmation(self, digest: str) -> tuple[TransactionResult, int]:
        """Poll *digest* until it resolves or the attempt budget is spent.

        Returns ``(result, attempts)`` where *result* is ``success`` or
        ``failure``. A ``NetworkError`` during a check counts as pending.
        Raises ``FundingTimeoutError`` when every check came back pending.
        """
        for attempt in range(1, self._poll_attempts + 1):
            try:
                result = self._gateway.get_transaction_status(digest)
            except NetworkError as exc:
                logger.debug("Status check %d for %s failed: %s", attempt, digest, exc)
            else:
                if result.status != TransactionStatus.PENDING:
                    return result, attempt
            if attempt < self._poll_attempts:
                self._sleep(self._poll_interval)
        raise FundingTimeoutError(
            f"Transaction {digest} still pending after {self._poll_attempts} checks"
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _current_balance(self, address: str) -> int | None:
        try:
            balance = self._gateway.get_balance(address, self._coin_type)
        except NetworkError as exc:
            logger.warning("Could not fetch balance for %s: %s", address, exc)
            return None
        return balance.total_balance

    def _confirm(
        self, address: str, digest: str, balance_before: int | None
    ) -> FundingReport:
        logger.info("Waiting for faucet transaction %s", digest)
        try:
            result, attempts = self.wait_for_confirmation(digest)
        except FundingTimeoutError as exc:
            logger.warning("%s. Please check manually.", exc)
            return FundingReport(
                address=address,
                outcome=FundingOutcome.TIMEOUT,
                attempts=self._poll_attempts,
                tx_digest=digest,
                balance_before=balance_before,
                error=str(exc),
            )

        if result.status == TransactionStatus.FAILURE:
            logger.error("Faucet transaction %s failed: %s", digest, result.error)
            return FundingReport(
                address=address,
                outcome=FundingOutcome.FAILED,
                attempts=attempts,
                tx_digest=digest,
                balance_before=balance_before,
                error=result.error,
            )

        balance_after = self._current_balance(address)
        logger.info("Faucet transaction %s confirmed after %d checks", digest, attempts)
        return FundingReport(
            address=address,
            outcome=FundingOutcome.CONFIRMED,
            attempts=attempts,
            tx_digest=digest,
            balance_before=balance_before,
            balance_after=balance_after,
        )

    def _request_fallback(
        self, address: str, balance_before: int | None, primary_error: str | None
    ) -> FundingReport:
        if self._fallback is None:
            return FundingReport(
                address=address,
                outcome=FundingOutcome.FALLBACK_FAILED,
                balance_before=balance_before,
                error=primary_error or "primary faucet returned no digest; no fallback configured",
            )

        logger.info("Trying alternative faucet %s", self._fallback.endpoint)
        try:
            grant = self._fallback.request_tokens(address)
        except (RateLimitError, NetworkError) as exc:
            logger.warning("Alternative faucet also failed: %s", exc)
            return FundingReport(
                address=address,
                outcome=FundingOutcome.FALLBACK_FAILED,
                balance_before=balance_before,
                fallback_used=True,
                error=str(exc),
            )
        return FundingReport(
            address=address,
            outcome=FundingOutcome.FALLBACK_REQUESTED,
            balance_before=balance_before,
            fallback_used=True,
            fallback_digest=grant.tx_digest,
            error=primary_error,
        )
