"""
Ed25519 signer for Sui transactions.

Keys come from the environment as base64, either the 33-byte form
exported by the Sui keystore (scheme flag + 32-byte seed) or a bare
32-byte seed.

Sui signing:
    digest    = blake2b-256(intent(0,0,0) || tx_bytes)
    signature = base64(flag || ed25519_sign(digest) || public_key)
    address   = 0x || hex(blake2b-256(flag || public_key))
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
from collections.abc import Mapping, Sequence

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from mizu.pipeline.errors import MissingCredential

logger = logging.getLogger(__name__)

ED25519_FLAG = 0x00
TRANSACTION_INTENT = bytes([0, 0, 0])
DEFAULT_KEY_VARIABLES = ("MIZU_PRIVATE_KEY", "PRIVATE_KEY")


def _blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


class Keypair:
    """Ed25519 keypair implementing the Signer protocol."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        self._public_key = private_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )

    @classmethod
    def from_seed(cls, seed: bytes) -> Keypair:
        if len(seed) != 32:
            raise ValueError(f"Ed25519 seed must be 32 bytes, got {len(seed)}")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    @classmethod
    def from_base64(cls, value: str) -> Keypair:
        """
        Decode a base64 secret key.

        Raises:
            ValueError: undecodable, wrong length or non-Ed25519 scheme flag
        """
        try:
            raw = base64.b64decode(value.strip(), validate=True)
        except binascii.Error as e:
            raise ValueError("private key is not valid base64") from e

        if len(raw) == 33:
            if raw[0] != ED25519_FLAG:
                raise ValueError(f"unsupported key scheme flag {raw[0]:#04x}")
            raw = raw[1:]
        return cls.from_seed(raw)

    @classmethod
    def from_env(
        cls,
        variables: Sequence[str] = DEFAULT_KEY_VARIABLES,
        environ: Mapping[str, str] | None = None,
    ) -> Keypair:
        """
        Load the signer from the first set variable.

        Raises:
            MissingCredential: none set, or the value is not a usable key
        """
        env = os.environ if environ is None else environ
        for name in variables:
            value = env.get(name)
            if not value:
                continue
            try:
                keypair = cls.from_base64(value)
            except ValueError as e:
                raise MissingCredential(name, f"is invalid: {e}") from e
            logger.debug(f"Loaded signer {keypair.address} from {name}")
            return keypair
        raise MissingCredential(" or ".join(variables))

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def address(self) -> str:
        return "0x" + _blake2b_256(bytes([ED25519_FLAG]) + self._public_key).hex()

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Serialized Sui signature over raw transaction bytes."""
        digest = _blake2b_256(TRANSACTION_INTENT + tx_bytes)
        signature = self._private_key.sign(digest)
        return base64.b64encode(bytes([ED25519_FLAG]) + signature + self._public_key).decode()

    def __repr__(self) -> str:
        return f"Keypair(address={self.address})"
