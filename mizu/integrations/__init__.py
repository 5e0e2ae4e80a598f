"""
Remote integrations for mizu.

Currently:
- sui: JSON-RPC client, signer and Move build helper
"""

from .base import (
    AuthenticationError,
    IntegrationConfig,
    IntegrationError,
    JsonRpcClient,
    RateLimitError,
    RpcError,
)

__all__ = [
    "AuthenticationError",
    "IntegrationConfig",
    "IntegrationError",
    "JsonRpcClient",
    "RateLimitError",
    "RpcError",
]
