"""
Error taxonomy for the mizu pipeline.

Every failure a stage can hit is one of these. They all propagate to the
Pipeline, which records them in the PipelineResult; nothing here is retried.
"""

from __future__ import annotations

from collections.abc import Iterable


class MizuError(Exception):
    """Base exception for mizu."""

    #: Short machine-readable kind, surfaced in StageFailure.kind
    kind: str = "internal"


class MissingKey(MizuError, KeyError):
    """Raised by a StateStore when a key was never written and has no default."""

    kind = "missing_key"

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Missing store key '{self.key}'"


class StageError(MizuError):
    """Base for failures attributed to a single stage."""

    def __init__(self, message: str, *, stage: str = ""):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.args[0]}"
        return str(self.args[0])


class UnresolvedDependency(StageError):
    """A stage read (or a type template placeholder) could not be resolved."""

    kind = "unresolved_dependency"

    def __init__(self, key: str, *, stage: str = ""):
        super().__init__(f"Unresolved dependency '{key}'", stage=stage)
        self.key = key


class ExpectedEntityNotFound(StageError):
    """No Created record of the expected type was found in the result log."""

    kind = "expected_entity_not_found"

    def __init__(self, expected_type: str, *, key: str = "", stage: str = ""):
        message = f"Could not find created object of type '{expected_type}'"
        if key:
            message += f" for '{key}'"
        super().__init__(message, stage=stage)
        self.expected_type = expected_type
        self.key = key


class SubmissionFailed(StageError):
    """The remote submission errored or returned no change log."""

    kind = "submission_failed"

    def __init__(self, cause: BaseException | str, *, stage: str = ""):
        detail = cause if isinstance(cause, str) else f"{type(cause).__name__}: {cause}"
        super().__init__(f"Submission failed: {detail}", stage=stage)
        self.cause = cause if isinstance(cause, BaseException) else None


class PayloadValidationError(StageError):
    """A built payload does not match its target's declared parameters."""

    kind = "invalid_payload"

    def __init__(self, target: str, message: str, *, stage: str = ""):
        super().__init__(f"{target}: {message}", stage=stage)
        self.target = target


class StoreFlushFailed(MizuError):
    """Persisting the store snapshot failed; in-memory state was restored."""

    kind = "store_flush_failed"

    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"Could not write snapshot to {path}: {cause}")
        self.path = path
        self.cause = cause


class MissingCredential(MizuError):
    """No usable signer could be loaded from the environment."""

    kind = "missing_credential"

    def __init__(self, variable: str, reason: str = "not set"):
        super().__init__(f"{variable} {reason}")
        self.variable = variable


class DuplicateWriterError(MizuError, ValueError):
    """Two write keys in one pipeline are the same, or one nests inside the other."""

    kind = "duplicate_writer"

    def __init__(self, key: str, stages: Iterable[str], owned: str | None = None):
        self.key = key
        self.stages = tuple(stages)
        self.owned = owned or key
        target = f"'{key}'"
        if self.owned != key:
            target += f" (overlaps '{self.owned}')"
        super().__init__(
            f"Store key {target} is written by more than one stage: "
            f"{', '.join(self.stages)}"
        )


class StoreKeyConflict(MizuError, ValueError):
    """A dotted key would replace a record with a scalar, or the reverse."""

    kind = "store_key_conflict"

    def __init__(self, key: str, existing: str):
        super().__init__(f"Store key '{key}' conflicts with existing entry '{existing}'")
        self.key = key
        self.existing = existing
