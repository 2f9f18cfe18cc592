"""Ledger gateway — thin JSON-RPC adapter to the remote network.

Bridge boundary
---------------
Exactly four operations cross this boundary:

1. ``get_balance(address, coin_type)``     — ``suix_getBalance``
2. ``get_object(object_id)``               — ``sui_getObject``
3. ``submit_transaction(signer, tx)``      — ``unsafe_publish`` / ``unsafe_moveCall``
                                             to build, local signing, then
                                             ``sui_executeTransactionBlock``
4. ``get_transaction_status(digest)``      — ``sui_getTransactionBlock``

Unsigned transaction bytes are built by the node (the ``unsafe_*`` builder
methods), so no BCS encoding happens locally. The publish builder transfers
the new package's UpgradeCap to the sender inside the same transaction.
"""

from __future__ import annotations

import base64
import itertools
import logging
from typing import Any

import httpx

from merchdeploy.core.identity import Keypair
from merchdeploy.errors import (
    ExecutionError,
    MerchDeployError,
    NetworkError,
    SubmissionError,
)
from merchdeploy.models.ledger import (
    Balance,
    TransactionBlock,
    TransactionKind,
    TransactionResult,
    TransactionStatus,
)

logger = logging.getLogger(__name__)

_RESPONSE_OPTIONS: dict[str, bool] = {
    "showEffects": True,
    "showObjectChanges": True,
}


class LedgerRpcError(MerchDeployError):
    """The node answered with a JSON-RPC ``error`` object."""

    def __init__(self, method: str, code: int | None, message: str) -> None:
        super().__init__(f"{method} failed ({code}): {message}")
        self.method = method
        self.code = code
        self.rpc_message = message


class LedgerGateway:
    """Synchronous JSON-RPC client for the four ledger operations.

    Parameters
    ----------
    rpc_url:
        Fullnode JSON-RPC endpoint.
    client:
        Optional pre-built ``httpx.Client`` (tests inject one backed by
        ``httpx.MockTransport``). A gateway that creates its own client
        closes it on ``close()``.
    timeout:
        Per-request timeout in seconds for a self-created client.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._rpc_url = rpc_url
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))
        self._ids = itertools.count(1)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> LedgerGateway:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # JSON-RPC transport
    # ------------------------------------------------------------------

    def _call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        logger.debug("RPC -> %s %s", method, self._rpc_url)
        try:
            response = self._client.post(self._rpc_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method}: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise NetworkError(f"{method}: response is not JSON") from exc
        if not isinstance(body, dict):
            raise NetworkError(f"{method}: response is not a JSON object")

        error = body.get("error")
        if error:
            raise LedgerRpcError(method, error.get("code"), error.get("message", ""))
        return body.get("result")

    # ------------------------------------------------------------------
    # 1. Balance
    # ------------------------------------------------------------------

    def get_balance(self, address: str, coin_type: str) -> Balance:
        """Return the balance of *address* in *coin_type*.

        Raises ``NetworkError`` on any failure; callers decide whether that
        is fatal.
        """
        try:
            result = self._call("suix_getBalance", [address, coin_type]) or {}
        except LedgerRpcError as exc:
            raise NetworkError(str(exc)) from exc
        return Balance(
            coin_type=result.get("coinType", coin_type),
            total_balance=int(result.get("totalBalance", 0)),
            coin_object_count=int(result.get("coinObjectCount", 0)),
        )

    # ------------------------------------------------------------------
    # 2. Objects
    # ------------------------------------------------------------------

    def get_object(self, object_id: str) -> dict[str, Any] | None:
        """Return the object's ``data`` dict, or ``None`` if it has no content.

        ``None`` covers both "does not exist" and "deleted"; the ledger
        returning content is the only evidence of existence.
        """
        try:
            result = self._call(
                "sui_getObject",
                [object_id, {"showContent": True, "showType": True, "showOwner": True}],
            ) or {}
        except LedgerRpcError as exc:
            logger.debug("sui_getObject(%s) returned error: %s", object_id, exc)
            return None
        data = result.get("data")
        if not data or not data.get("content"):
            return None
        return data

    # ------------------------------------------------------------------
    # 3. Submit
    # ------------------------------------------------------------------

    def _build(self, sender: str, tx_block: TransactionBlock) -> str:
        gas_budget = str(tx_block.gas_budget)
        if tx_block.kind == TransactionKind.PUBLISH:
            method = "unsafe_publish"
            params: list[Any] = [
                sender,
                tx_block.modules,
                tx_block.dependencies,
                None,  # let the node pick a gas coin
                gas_budget,
            ]
        else:
            method = "unsafe_moveCall"
            params = [
                sender,
                tx_block.package_id,
                tx_block.module,
                tx_block.function,
                tx_block.type_arguments,
                tx_block.arguments,
                None,
                gas_budget,
                None,
            ]
        try:
            result = self._call(method, params) or {}
        except LedgerRpcError as exc:
            raise SubmissionError(str(exc)) from exc
        tx_bytes = result.get("txBytes")
        if not tx_bytes:
            raise SubmissionError(f"{method} returned no transaction bytes")
        return tx_bytes

    def submit_transaction(
        self, signer: Keypair, tx_block: TransactionBlock
    ) -> TransactionResult:
        """Build, sign and execute *tx_block*; block until effects are known.

        Raises
        ------
        SubmissionError
            The node refused to build or execute the transaction.
        ExecutionError
            The transaction executed and failed on-chain (``exc.result``
            holds the full result, ``exc.result.error`` the on-chain error).
        NetworkError
            Transport failure.
        """
        tx_bytes = self._build(signer.address, tx_block)
        signature = signer.sign_transaction(base64.b64decode(tx_bytes))
        try:
            payload = self._call(
                "sui_executeTransactionBlock",
                [tx_bytes, [signature], _RESPONSE_OPTIONS, "WaitForLocalExecution"],
            ) or {}
        except LedgerRpcError as exc:
            raise SubmissionError(str(exc)) from exc

        result = TransactionResult.from_rpc(payload)
        logger.info(
            "Transaction %s (%s) -> %s",
            result.digest,
            tx_block.kind.value,
            result.status.value,
        )
        if result.status == TransactionStatus.FAILURE:
            raise ExecutionError(
                f"Transaction {result.digest} failed on-chain: {result.error}",
                result,
            )
        return result

    # ------------------------------------------------------------------
    # 4. Status
    # ------------------------------------------------------------------

    def get_transaction_status(self, digest: str) -> TransactionResult:
        """Return the current status of *digest*.

        A digest the node does not know yet is reported as ``pending``; that
        is not an error. Transport failures raise ``NetworkError``.
        """
        try:
            payload = self._call(
                "sui_getTransactionBlock", [digest, _RESPONSE_OPTIONS]
            ) or {}
        except LedgerRpcError as exc:
            logger.debug("Transaction %s not available yet: %s", digest, exc)
            return TransactionResult(digest=digest, status=TransactionStatus.PENDING)
        if not payload.get("digest"):
            payload = {**payload, "digest": digest}
        return TransactionResult.from_rpc(payload)
