"""
Pipeline executor for mizu.

The Pipeline runs an ordered list of stages against one session store.
Stage n+1 starts only after stage n has committed and flushed, and the
first failure of any kind stops the run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .context import PipelineResult, SessionContext, StageFailure
from .errors import DuplicateWriterError, MizuError, SubmissionFailed

if TYPE_CHECKING:
    from .stage import Stage

logger = logging.getLogger(__name__)


def _overlaps(key: str, other: str) -> bool:
    """Same key, or one is a dotted prefix of the other (a record and its field)."""
    return key == other or key.startswith(f"{other}.") or other.startswith(f"{key}.")


class Pipeline:
    """
    Pipeline executes stages strictly in order.

    Execution Model:
    - One stage at a time; a stage's submission is fully awaited before
      the next stage reads the store
    - Fail-fast: the first failure is recorded and later stages never run
    - No rollback: stages that already committed stay committed, so the
      run can be resumed with starting_at() once the cause is fixed
    - No automatic retry

    Example:
        pipeline = Pipeline([BuyWaterCooler(), InitWaterCooler()], name="water_cooler")
        result = await pipeline.run(ctx)
        if not result.success:
            print(result.failure.message)
    """

    def __init__(self, stages: Iterable[Stage], name: str = "pipeline"):
        """
        Initialize pipeline with ordered stages.

        Raises:
            ValueError: empty pipeline, duplicate stage names, or write
                types that reference each other in a cycle
            DuplicateWriterError: two write keys are the same, or one is a
                dotted prefix of the other
        """
        self.stages = list(stages)
        self.name = name
        if not self.stages:
            raise ValueError("Pipeline must have at least one stage")
        self.owners = self._check_ownership(self.stages)

    @staticmethod
    def _check_ownership(stages: list[Stage]) -> dict[str, str]:
        """Tag each write key with its single writer stage."""
        names: set[str] = set()
        owners: dict[str, str] = {}
        for stage in stages:
            if stage.name in names:
                raise ValueError(f"Duplicate stage name '{stage.name}'")
            names.add(stage.name)

            unknown = stage.template_keys() - set(stage.reads) - set(stage.writes)
            if unknown:
                raise ValueError(
                    f"Stage '{stage.name}' write types reference undeclared keys: "
                    f"{sorted(unknown)}"
                )

            stage.write_order()

            for key in stage.writes:
                for owned, owner in owners.items():
                    if _overlaps(key, owned):
                        raise DuplicateWriterError(key, [owner, stage.name], owned=owned)
                owners[key] = stage.name
        return owners

    @property
    def stage_names(self) -> list[str]:
        """Get names of all stages in order."""
        return [s.name for s in self.stages]

    def starting_at(self, stage_name: str) -> Pipeline:
        """
        Tail of this pipeline beginning with ``stage_name``.

        Used to resume after a failure: reload the store snapshot, then run
        the remaining stages.
        """
        for index, stage in enumerate(self.stages):
            if stage.name == stage_name:
                return Pipeline(self.stages[index:], name=self.name)
        raise ValueError(f"Pipeline '{self.name}' has no stage '{stage_name}'")

    async def run(
        self,
        ctx: SessionContext,
        *,
        stage_timeout: float | None = None,
    ) -> PipelineResult:
        """
        Run every stage in order against ``ctx.store``.

        Args:
            ctx: Session context shared by all stages
            stage_timeout: Optional per-stage timeout in seconds; a stage
                that times out is aborted before it commits anything

        Returns:
            PipelineResult; ``failure`` is set if a stage failed
        """
        logger.info(
            f"Pipeline '{self.name}' starting: execution_id={str(ctx.execution_id)[:8]}..., "
            f"actor={ctx.actor}, stages={self.stage_names}"
        )
        if ctx.logger:
            ctx.logger.pipeline_started(self.name, self.stage_names)

        result = PipelineResult(context=ctx)

        for index, stage in enumerate(self.stages):
            try:
                if stage_timeout is None:
                    stage_result = await stage.run(ctx)
                else:
                    stage_result = await asyncio.wait_for(stage.run(ctx), timeout=stage_timeout)
            except (asyncio.TimeoutError, TimeoutError) as e:
                failure = SubmissionFailed(e, stage=stage.name)
                result.failure = StageFailure.from_exception(failure, stage.name)
            except MizuError as e:
                logger.error(f"Stage '{stage.name}' failed: {e}")
                result.failure = StageFailure.from_exception(e, stage.name)
            except Exception as e:
                logger.error(f"Stage '{stage.name}' raised unexpectedly: {e}", exc_info=True)
                result.failure = StageFailure.from_exception(e, stage.name)
            else:
                result.stage_results.append(stage_result)
                continue

            if ctx.logger:
                ctx.logger.stage_failed(stage.name, result.failure.kind, result.failure.message)
            result.skipped = [s.name for s in self.stages[index + 1 :]]
            break

        if result.success:
            logger.info(
                f"Pipeline '{self.name}' complete: stages={len(result.stage_results)}, "
                f"duration={ctx.elapsed_ms:.1f}ms"
            )
        else:
            logger.warning(
                f"Pipeline '{self.name}' stopped at '{result.failure.stage}' "
                f"({result.failure.kind}); skipped={result.skipped}"
            )
        if ctx.logger:
            ctx.logger.pipeline_completed(
                success=result.success,
                duration_ms=ctx.elapsed_ms,
                stages_run=len(result.stage_results),
                error=result.failure.message if result.failure else None,
            )

        return result

    def __repr__(self) -> str:
        return f"Pipeline(name={self.name!r}, stages={self.stage_names})"


class PipelineBuilder:
    """
    Builder for constructing pipelines with fluent API.

    Ownership of write keys is checked in build(), so a pipeline where two
    stages claim the same key never gets to run.

    Example:
        pipeline = (
            PipelineBuilder("public_mint")
            .add(PublicMint())
            .add_if(with_attributes, MintImageAttributes())
            .build()
        )
    """

    def __init__(self, name: str = "pipeline") -> None:
        self._name = name
        self._stages: list[Stage] = []

    def add(self, stage: Stage) -> PipelineBuilder:
        """Add a stage to the pipeline."""
        self._stages.append(stage)
        return self

    def add_if(self, condition: bool, stage: Stage) -> PipelineBuilder:
        """Conditionally add a stage."""
        if condition:
            self._stages.append(stage)
        return self

    def build(self) -> Pipeline:
        """Build and return the pipeline."""
        return Pipeline(self._stages, name=self._name)
