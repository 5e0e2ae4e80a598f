"""
Sui integration for mizu.

Provides the JSON-RPC Submitter, the Ed25519 signer and the Move
package build helper.
"""

from .client import NETWORK_URLS, TESTNET_URL, SuiClient, SuiConfig
from .keypair import Keypair
from .move import MoveBuildError, build_package
from .schemas import (
    TransactionBlockBytes,
    TransactionBlockResponse,
    parse_amount,
)

__all__ = [
    "NETWORK_URLS",
    "TESTNET_URL",
    "SuiClient",
    "SuiConfig",
    "Keypair",
    "MoveBuildError",
    "build_package",
    "TransactionBlockBytes",
    "TransactionBlockResponse",
    "parse_amount",
]
