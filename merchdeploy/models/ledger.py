"""Ledger-facing models — what the gateway accepts and returns.

Only the narrow slice of the Sui JSON-RPC shapes the pipeline needs is
modelled; everything else in a response is ignored.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TransactionStatus(str, Enum):
    """Execution status of a transaction as seen by the pipeline."""

    SUCCESS = "success"
    FAILURE = "failure"
    PENDING = "pending"


class ObjectChange(BaseModel):
    """One entry of a transaction's ``objectChanges`` list."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    type: str  # "created", "published", "mutated", "transferred", ...
    object_id: str = Field(default="", alias="objectId")
    object_type: str = Field(default="", alias="objectType")
    package_id: str = Field(default="", alias="packageId")


class TransactionResult(BaseModel):
    """Outcome of a submitted or queried transaction.

    Consumed transiently; only derived fields are copied into the manifest.
    """

    model_config = ConfigDict(frozen=True)

    digest: str
    status: TransactionStatus
    error: str | None = None
    object_changes: list[ObjectChange] = []

    @classmethod
    def from_rpc(cls, payload: dict[str, Any]) -> TransactionResult:
        """Build a result from a ``SuiTransactionBlockResponse`` dict."""
        effects = payload.get("effects") or {}
        status_info = effects.get("status") or {}
        raw_status = status_info.get("status")
        try:
            status = TransactionStatus(raw_status)
        except ValueError:
            # No effects yet: the node knows the digest but has not executed it.
            status = TransactionStatus.PENDING
        return cls(
            digest=payload.get("digest", ""),
            status=status,
            error=status_info.get("error"),
            object_changes=[
                ObjectChange.model_validate(change)
                for change in payload.get("objectChanges") or []
            ],
        )

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCESS

    def published_package_id(self) -> str | None:
        """Return the package id of the first ``published`` object change."""
        for change in self.object_changes:
            if change.type == "published" and change.package_id:
                return change.package_id
        return None

    def created_objects(self) -> list[ObjectChange]:
        """Return the ``created`` object changes in ledger order."""
        return [c for c in self.object_changes if c.type == "created"]


class Balance(BaseModel):
    """Coin balance of an address at a point in time (informational only)."""

    model_config = ConfigDict(frozen=True)

    coin_type: str
    total_balance: int
    coin_object_count: int = 0


class TransactionKind(str, Enum):
    PUBLISH = "publish"
    MOVE_CALL = "move_call"


class TransactionBlock(BaseModel):
    """An unsigned transaction the caller wants the gateway to submit.

    Use the ``publish`` and ``move_call`` constructors rather than building
    one by hand.
    """

    model_config = ConfigDict(frozen=True)

    kind: TransactionKind
    gas_budget: int
    # publish
    modules: list[str] = []  # base64-encoded bytecode
    dependencies: list[str] = []
    # move_call
    package_id: str = ""
    module: str = ""
    function: str = ""
    type_arguments: list[str] = []
    arguments: list[Any] = []

    @classmethod
    def publish(
        cls,
        modules: list[str],
        *,
        gas_budget: int,
        dependencies: list[str] | None = None,
    ) -> TransactionBlock:
        """Publish *modules*; the upgrade capability goes to the sender."""
        return cls(
            kind=TransactionKind.PUBLISH,
            gas_budget=gas_budget,
            modules=modules,
            dependencies=dependencies or [],
        )

    @classmethod
    def move_call(
        cls,
        package_id: str,
        module: str,
        function: str,
        *,
        gas_budget: int,
        type_arguments: list[str] | None = None,
        arguments: list[Any] | None = None,
    ) -> TransactionBlock:
        return cls(
            kind=TransactionKind.MOVE_CALL,
            gas_budget=gas_budget,
            package_id=package_id,
            module=module,
            function=function,
            type_arguments=type_arguments or [],
            arguments=arguments or [],
        )

    @property
    def target(self) -> str:
        """``package::module::function`` for move calls, empty otherwise."""
        if self.kind != TransactionKind.MOVE_CALL:
            return ""
        return f"{self.package_id}::{self.module}::{self.function}"
