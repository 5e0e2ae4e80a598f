"""
Session context and results for mizu pipelines.

The SessionContext is built once per run by the caller (the CLI, or a
test) and handed to every stage. It is the only way a stage reaches the
store, the submitter or the signer; there are no module-level clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from .errors import MizuError
from .store import flatten

if TYPE_CHECKING:
    from .changes import ResultLog
    from .observability import PipelineLogger
    from .store import StateStore
    from .submitter import Signer, Submitter


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionContext:
    """
    Per-actor session state passed through the pipeline.

    Provides:
    - The actor's StateStore (the single shared mutable resource)
    - The Submitter and Signer used for every stage
    - Static flow parameters (call arguments that are not store values)
    - Execution id and timings for logging
    """

    store: StateStore
    submitter: Submitter
    signer: Signer | None = None
    actor: str = "admin"
    params: Any = None

    execution_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=_utc_now)
    logger: PipelineLogger | None = None

    stage_timings: dict[str, float] = field(default_factory=dict)

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the session started."""
        return (_utc_now() - self.started_at).total_seconds() * 1000

    @property
    def signer_address(self) -> str:
        if self.signer is None:
            raise MizuError(f"No signer configured for actor '{self.actor}'")
        return self.signer.address

    def record_timing(self, stage_name: str, duration_ms: float) -> None:
        self.stage_timings[stage_name] = duration_ms


@dataclass(frozen=True, slots=True)
class StageResult:
    """Outcome of one successful stage run."""

    stage: str
    log: ResultLog
    writes: dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "digest": self.log.digest,
            "writes": self.writes,
            "duration_ms": round(self.duration_ms, 2),
        }


@dataclass(frozen=True, slots=True)
class StageFailure:
    """Why a pipeline stopped: failing stage, failure kind and context."""

    stage: str
    kind: str
    message: str
    key: str | None = None
    expected_type: str | None = None
    exception_class: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException, stage: str) -> StageFailure:
        kind = exc.kind if isinstance(exc, MizuError) else "internal"
        return cls(
            stage=stage,
            kind=kind,
            message=str(exc),
            key=getattr(exc, "key", None),
            expected_type=getattr(exc, "expected_type", None),
            exception_class=type(exc).__name__,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "kind": self.kind,
            "message": self.message,
            "key": self.key,
            "expected_type": self.expected_type,
        }


@dataclass
class PipelineResult:
    """
    Result of a pipeline run.

    The caller decides what to do with it (print, exit code); the core
    never terminates the process.
    """

    context: SessionContext
    stage_results: list[StageResult] = field(default_factory=list)
    failure: StageFailure | None = None
    skipped: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failure is None

    @property
    def execution_id(self) -> UUID:
        return self.context.execution_id

    @property
    def duration_ms(self) -> float:
        return self.context.elapsed_ms

    @property
    def completed(self) -> list[str]:
        return [r.stage for r in self.stage_results]

    @property
    def writes(self) -> dict[str, Any]:
        """Store delta committed by this run, as dotted keys."""
        delta: dict[str, Any] = {}
        for result in self.stage_results:
            delta.update(flatten(result.writes))
        return delta

    def get(self, stage: str) -> StageResult | None:
        for result in self.stage_results:
            if result.stage == stage:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "execution_id": str(self.execution_id),
            "actor": self.context.actor,
            "success": self.success,
            "duration_ms": round(self.duration_ms, 2),
            "stages": [r.to_dict() for r in self.stage_results],
            "skipped": self.skipped,
            "failure": self.failure.to_dict() if self.failure else None,
            "writes": self.writes,
        }
