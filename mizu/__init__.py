"""
Mizu - A staged transaction pipeline for the Mizu water cooler contracts on Sui.

Mizu runs ordered sequences of on-chain transactions where each stage
discovers the objects created by earlier stages:

- **Stages**: read ids from a store, submit one transaction, extract the
  created objects by their exact Move type
- **State Store**: dotted-key JSON snapshots per actor, flushed atomically
  after every stage
- **Pipeline**: sequential, fail-fast execution with resumable runs
- **Sui Integration**: JSON-RPC submitter and Ed25519 signer

Quick Start:
    >>> from mizu.pipeline import MemoryStateStore, SessionContext
    >>> from mizu.stages import get_flow
    >>>
    >>> pipeline = get_flow("water_cooler").build()
    >>> ctx = SessionContext(store=MemoryStateStore(), submitter=client, signer=keypair)
    >>> result = await pipeline.run(ctx)
"""

__version__ = "0.1.0"

# Core exports for convenient imports
from mizu.pipeline import (
    JsonFileStateStore,
    MemoryStateStore,
    Pipeline,
    PipelineBuilder,
    PipelineResult,
    ResultLog,
    SessionContext,
    Stage,
    StateStore,
    find_one_by_type,
)

__all__ = [
    # Version info
    "__version__",
    # Core pipeline
    "Pipeline",
    "PipelineBuilder",
    "PipelineResult",
    "SessionContext",
    "Stage",
    # State
    "StateStore",
    "MemoryStateStore",
    "JsonFileStateStore",
    # Results
    "ResultLog",
    "find_one_by_type",
]
