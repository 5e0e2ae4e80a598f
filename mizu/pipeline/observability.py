"""
Observability for mizu pipelines.

Structured JSON logging on top of stdlib logging, plus a PipelineLogger
with one method per pipeline/stage lifecycle event so every run emits the
same, greppable records.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class StructuredLogger(Protocol):
    """Protocol for key-value loggers."""

    def debug(self, message: str, **context: Any) -> None: ...

    def info(self, message: str, **context: Any) -> None: ...

    def warning(self, message: str, **context: Any) -> None: ...

    def error(self, message: str, **context: Any) -> None: ...


@dataclass
class JSONLogger:
    """
    Structured logger that emits one JSON object per record.

    Example output:
        {"timestamp": "2026-01-02T10:30:00+00:00", "level": "info",
         "message": "Stage completed", "request_id": "3f2a...",
         "stage": "public_mint", "writes": ["mint", "mint_cap"]}
    """

    name: str = "mizu"
    request_id: str | None = None
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def _log(self, level: LogLevel, message: str, context: dict[str, Any]) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "message": message,
            **self.extra_context,
            **context,
        }
        if self.request_id:
            record["request_id"] = self.request_id

        getattr(self._python_logger, level.value)(json.dumps(record, default=str))

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, context)

    def with_context(self, **extra: Any) -> JSONLogger:
        """Create a new logger with additional context."""
        return JSONLogger(
            name=self.name,
            request_id=self.request_id,
            extra_context={**self.extra_context, **extra},
        )


@dataclass
class PipelineLogger:
    """
    Lifecycle events for a pipeline run.

    Example:
        log = PipelineLogger(request_id=str(ctx.execution_id), actor="user1")
        log.pipeline_started("public_mint", ["buy_water_cooler", "public_mint"])
        log.stage_completed("buy_water_cooler", 812.4, digest="9xQ..", writes=["water_cooler"])
        log.pipeline_completed(success=True, duration_ms=2010.0, stages_run=2)
    """

    request_id: str
    actor: str = ""
    inner: StructuredLogger | None = None

    def __post_init__(self) -> None:
        if self.inner is None:
            self.inner = JSONLogger(
                name="mizu.pipeline",
                request_id=self.request_id,
                extra_context={"actor": self.actor} if self.actor else {},
            )

    def pipeline_started(self, pipeline_name: str, stages: list[str]) -> None:
        self.inner.info(
            "Pipeline started",
            pipeline=pipeline_name,
            stages=stages,
            stage_count=len(stages),
        )

    def pipeline_completed(
        self,
        success: bool,
        duration_ms: float,
        stages_run: int,
        error: str | None = None,
    ) -> None:
        if success:
            self.inner.info(
                "Pipeline completed",
                success=True,
                duration_ms=round(duration_ms, 2),
                stages_run=stages_run,
            )
        else:
            self.inner.error(
                "Pipeline failed",
                success=False,
                duration_ms=round(duration_ms, 2),
                stages_run=stages_run,
                error=error,
            )

    def stage_started(self, stage_name: str, reads: list[str]) -> None:
        self.inner.debug("Stage started", stage=stage_name, reads=reads)

    def stage_completed(
        self,
        stage_name: str,
        duration_ms: float,
        digest: str | None,
        writes: list[str],
    ) -> None:
        self.inner.info(
            "Stage completed",
            stage=stage_name,
            duration_ms=round(duration_ms, 2),
            digest=digest,
            writes=writes,
        )

    def stage_failed(self, stage_name: str, kind: str, error: str) -> None:
        self.inner.error("Stage failed", stage=stage_name, kind=kind, error=error)
