"""
mizu pipeline core.

Components:
- ResultLog / ChangeRecord: Immutable object changes from one submission
- find_one_by_type: First created object of an exact Move type
- StateStore: Dotted-key store, flushed atomically after each stage
- Stage: read -> build -> submit -> extract -> commit
- Pipeline: Sequential, fail-fast stage executor
- SessionContext: Per-actor dependencies handed to every stage
"""

from .changes import ChangeKind, ChangeRecord, ResultLog
from .context import PipelineResult, SessionContext, StageFailure, StageResult
from .errors import (
    DuplicateWriterError,
    ExpectedEntityNotFound,
    MissingCredential,
    MissingKey,
    MizuError,
    PayloadValidationError,
    StageError,
    StoreFlushFailed,
    StoreKeyConflict,
    SubmissionFailed,
    UnresolvedDependency,
)
from .executor import Pipeline, PipelineBuilder
from .lookup import PUBLISHED_PACKAGE, find_one_by_type, find_published
from .observability import JSONLogger, PipelineLogger
from .payload import MoveCall, MoveFunction, ParamKind, Payload, Publish, Transaction
from .stage import FunctionStage, Stage
from .store import JsonFileStateStore, MemoryStateStore, StateStore
from .submitter import Signer, Submitter

__all__ = [
    # Core
    "Pipeline",
    "PipelineBuilder",
    "PipelineResult",
    "SessionContext",
    "Stage",
    "FunctionStage",
    "StageResult",
    "StageFailure",
    # Result log
    "ChangeKind",
    "ChangeRecord",
    "ResultLog",
    "PUBLISHED_PACKAGE",
    "find_one_by_type",
    "find_published",
    # Store
    "StateStore",
    "MemoryStateStore",
    "JsonFileStateStore",
    # Payloads
    "MoveFunction",
    "MoveCall",
    "ParamKind",
    "Payload",
    "Publish",
    "Transaction",
    # Protocols
    "Signer",
    "Submitter",
    # Errors
    "MizuError",
    "MissingKey",
    "StageError",
    "UnresolvedDependency",
    "ExpectedEntityNotFound",
    "SubmissionFailed",
    "PayloadValidationError",
    "StoreFlushFailed",
    "StoreKeyConflict",
    "MissingCredential",
    "DuplicateWriterError",
    # Observability
    "JSONLogger",
    "PipelineLogger",
]
