"""
Pydantic schemas for the Sui JSON-RPC API.

Only the parts of the responses mizu consumes are modelled; everything
else is kept via ``extra="allow"``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MIST_PER_SUI = 1_000_000_000


def parse_amount(amount: str | int) -> float:
    """Convert a MIST amount (as returned in balance changes) to SUI."""
    return int(amount) / MIST_PER_SUI


class _SuiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class TransactionBlockBytes(_SuiModel):
    """Result of the ``unsafe_*`` transaction builder methods."""

    tx_bytes: str = Field(..., alias="txBytes", description="Base64 BCS transaction data")
    gas: list[dict[str, Any]] = Field(default_factory=list)
    input_objects: list[Any] = Field(default_factory=list, alias="inputObjects")


class ExecutionStatus(_SuiModel):
    status: str
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


class TransactionEffects(_SuiModel):
    status: ExecutionStatus


class BalanceChange(_SuiModel):
    owner: Any = None
    coin_type: str = Field("", alias="coinType")
    amount: str = "0"


class TransactionBlockResponse(_SuiModel):
    """Result of ``sui_executeTransactionBlock``."""

    digest: str
    effects: TransactionEffects | None = None
    object_changes: list[dict[str, Any]] | None = Field(None, alias="objectChanges")
    balance_changes: list[BalanceChange] | None = Field(None, alias="balanceChanges")

    @property
    def gas_spent(self) -> float | None:
        """SUI spent by the sender, from the first balance change."""
        if not self.balance_changes:
            return None
        return abs(parse_amount(self.balance_changes[0].amount))
