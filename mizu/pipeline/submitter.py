"""
Submission protocols.

The pipeline core never talks to the network directly. A stage hands its
validated payload to a Submitter together with the session's Signer and
gets a ResultLog back. SuiClient is the production implementation; tests
use scripted fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .changes import ResultLog
    from .payload import Payload


@runtime_checkable
class Signer(Protocol):
    """Identity that signs submitted transactions."""

    @property
    def address(self) -> str:
        """Ledger address of the signer (0x-prefixed hex)."""
        ...

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Return the serialized signature for raw transaction bytes."""
        ...


@runtime_checkable
class Submitter(Protocol):
    """Sends one payload to the ledger and returns its change log."""

    async def submit(self, payload: Payload, signer: Signer | None) -> ResultLog:
        """
        Submit and wait for the transaction to execute.

        Raises:
            Exception: any transport or execution failure; the calling
                stage wraps it in SubmissionFailed
        """
        ...
