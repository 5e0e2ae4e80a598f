"""
Pytest configuration and fixtures for mizu tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from mizu.pipeline import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from mizu.integrations.sui import Keypair  # noqa: E402
from mizu.pipeline import MemoryStateStore, SessionContext  # noqa: E402

PACKAGE_ID = "0xabc"


class ScriptedSubmitter:
    """
    Submitter that replays a fixed list of outcomes.

    Each entry is a ResultLog to return or an exception to raise. Payloads
    are recorded so tests can assert what was (or was not) sent.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.payloads = []

    @property
    def calls(self) -> int:
        return len(self.payloads)

    async def submit(self, payload, signer):
        self.payloads.append(payload)
        if not self.outcomes:
            raise AssertionError("unexpected submission")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def package_id():
    """Package id used across stage tests."""
    return PACKAGE_ID


@pytest.fixture
def store():
    """Empty in-memory store."""
    return MemoryStateStore(name="test")


@pytest.fixture
def make_submitter():
    """Factory for scripted submitters."""
    return ScriptedSubmitter


@pytest.fixture
def make_ctx(store):
    """Build a SessionContext around the test store and a scripted submitter."""

    def _make(*outcomes, **kwargs):
        kwargs.setdefault("store", store)
        return SessionContext(submitter=ScriptedSubmitter(*outcomes), **kwargs)

    return _make


@pytest.fixture
def seed():
    """Deterministic Ed25519 seed."""
    return bytes(range(32))


@pytest.fixture
def keypair(seed):
    """Signer built from the deterministic seed."""
    return Keypair.from_seed(seed)
