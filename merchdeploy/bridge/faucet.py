"""Faucet client — one token request against one faucet endpoint.

The faucet is an external, rate-limited service. This client makes a single
POST and classifies the answer; retry and fallback policy belong to the
Funding Controller.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict

from merchdeploy.errors import NetworkError, RateLimitError

logger = logging.getLogger(__name__)


class FaucetGrant(BaseModel):
    """An accepted faucet request. ``tx_digest`` may be absent."""

    model_config = ConfigDict(frozen=True)

    endpoint: str
    tx_digest: str | None = None


def _extract_digest(body: dict[str, Any]) -> str | None:
    """Find the funding transaction digest in a faucet response body."""
    digest = body.get("txDigest")
    if digest:
        return digest
    for gas_object in body.get("transferredGasObjects") or []:
        digest = gas_object.get("transferTxDigest")
        if digest:
            return digest
    return None


class FaucetClient:
    """Requests test tokens from a single faucet endpoint.

    Parameters
    ----------
    base_url:
        Faucet root; the request goes to ``<base_url>/gas``.
    client:
        Optional shared ``httpx.Client``.
    timeout:
        Request timeout in seconds for a self-created client.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/gas"

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> FaucetClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def request_tokens(self, recipient: str) -> FaucetGrant:
        """POST a fixed-amount request for *recipient*.

        Raises ``RateLimitError`` on HTTP 429 and ``NetworkError`` on any
        transport failure or other non-success answer.
        """
        body = {"FixedAmountRequest": {"recipient": recipient}}
        try:
            response = self._client.post(self.endpoint, json=body)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Faucet {self.endpoint} unreachable: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitError(f"Faucet {self.endpoint} rate limited the request")
        if response.is_error:
            raise NetworkError(
                f"Faucet {self.endpoint} answered {response.status_code}: {response.text[:200]}"
            )

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        if payload.get("error"):
            raise NetworkError(f"Faucet {self.endpoint} reported: {payload['error']}")

        grant = FaucetGrant(endpoint=self.endpoint, tx_digest=_extract_digest(payload))
        logger.info(
            "Faucet %s accepted request for %s (digest=%s)",
            self.endpoint,
            recipient,
            grant.tx_digest or "pending",
        )
        return grant
