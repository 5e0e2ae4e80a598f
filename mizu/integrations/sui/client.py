"""
Sui JSON-RPC client for mizu.

Implements the pipeline's Submitter protocol:

    1. build transaction bytes on the fullnode
       (unsafe_batchTransaction for move calls, unsafe_publish for packages)
    2. sign them locally with the session's Signer
    3. execute with sui_executeTransactionBlock and return the object
       changes as a ResultLog

Usage:
    async with SuiClient(SuiConfig(base_url=TESTNET_URL)) as client:
        log = await client.submit(Transaction.of(call), keypair)

API Reference:
    https://docs.sui.io/sui-api-ref
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mizu.integrations.base import IntegrationConfig, JsonRpcClient
from mizu.pipeline.changes import ResultLog
from mizu.pipeline.errors import MissingCredential, SubmissionFailed
from mizu.pipeline.payload import Publish, Transaction

from .schemas import TransactionBlockBytes, TransactionBlockResponse

if TYPE_CHECKING:
    from mizu.pipeline.payload import MoveCall, Payload
    from mizu.pipeline.submitter import Signer

logger = logging.getLogger(__name__)

NETWORK_URLS = {
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "devnet": "https://fullnode.devnet.sui.io:443",
    "localnet": "http://127.0.0.1:9000",
}
TESTNET_URL = NETWORK_URLS["testnet"]


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class SuiConfig(IntegrationConfig):
    """Configuration for the Sui client."""

    base_url: str = TESTNET_URL

    # Budget in MIST for every transaction this client builds
    gas_budget: int = 100_000_000
    request_type: str = "WaitForLocalExecution"

    def __post_init__(self):
        if self.gas_budget <= 0:
            raise ValueError("gas_budget must be positive")


# =============================================================================
# Client
# =============================================================================


class SuiClient(JsonRpcClient):
    """
    Async client for a Sui fullnode.

    Provides methods for:
    - Building move-call and publish transactions
    - Executing signed transactions
    - Reading normalized Move function signatures
    """

    def __init__(self, config: SuiConfig | None = None, **kwargs: Any):
        config = config or SuiConfig()
        super().__init__(config, **kwargs)
        self._config: SuiConfig = config

    @property
    def name(self) -> str:
        return "sui"

    # =========================================================================
    # Transaction building
    # =========================================================================

    async def build_move_calls(self, sender: str, calls: tuple[MoveCall, ...]) -> TransactionBlockBytes:
        """Build one transaction containing every call, in order."""
        params = [{"moveCallRequestParams": call.to_rpc_params()} for call in calls]
        result = await self.call(
            "unsafe_batchTransaction",
            [sender, params, None, str(self._config.gas_budget)],
        )
        return TransactionBlockBytes.model_validate(result)

    async def build_publish(self, sender: str, publish: Publish) -> TransactionBlockBytes:
        """Build a publish transaction; the node transfers the UpgradeCap to ``sender``."""
        result = await self.call(
            "unsafe_publish",
            [
                sender,
                list(publish.modules),
                list(publish.dependencies),
                None,
                str(self._config.gas_budget),
            ],
        )
        return TransactionBlockBytes.model_validate(result)

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(self, tx_bytes: str, signatures: list[str]) -> TransactionBlockResponse:
        """Execute signed transaction bytes and wait for local execution."""
        result = await self.call(
            "sui_executeTransactionBlock",
            [
                tx_bytes,
                signatures,
                {
                    "showEffects": True,
                    "showObjectChanges": True,
                    "showBalanceChanges": True,
                    "showEvents": False,
                    "showInput": False,
                    "showRawInput": False,
                },
                self._config.request_type,
            ],
        )
        return TransactionBlockResponse.model_validate(result)

    async def get_normalized_move_function(
        self,
        package_id: str,
        module: str,
        function: str,
    ) -> dict[str, Any]:
        """Declared parameters of an on-chain function, for signature checks."""
        return await self.call(
            "sui_getNormalizedMoveFunction",
            [package_id, module, function],
        )

    async def submit(self, payload: Payload, signer: Signer | None) -> ResultLog:
        """
        Build, sign and execute ``payload``.

        Raises:
            MissingCredential: no signer in the session
            SubmissionFailed: execution failed on chain or returned no changes
            IntegrationError: transport or RPC failure
        """
        if signer is None:
            raise MissingCredential("signer", "is required to submit transactions")

        if isinstance(payload, Publish):
            built = await self.build_publish(signer.address, payload)
        elif isinstance(payload, Transaction):
            built = await self.build_move_calls(signer.address, payload.calls)
        else:
            raise TypeError(f"Unsupported payload type: {type(payload).__name__}")

        signature = signer.sign_transaction(base64.b64decode(built.tx_bytes))
        response = await self.execute(built.tx_bytes, [signature])

        if response.effects is not None and not response.effects.status.succeeded:
            raise SubmissionFailed(
                f"transaction {response.digest} failed: {response.effects.status.error}"
            )
        if response.object_changes is None:
            raise SubmissionFailed(f"transaction {response.digest} returned no object changes")

        spent = response.gas_spent
        logger.info(
            f"[{self.name}] Executed {response.digest}: "
            f"{len(response.object_changes)} object changes"
            + (f", spent {spent} SUI" if spent is not None else "")
        )
        return ResultLog.from_object_changes(response.object_changes, digest=response.digest)
