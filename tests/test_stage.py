"""
Tests for the Stage read-build-submit-extract-write cycle.
"""
import pytest

from mizu.pipeline import (
    ChangeRecord,
    ExpectedEntityNotFound,
    FunctionStage,
    MemoryStateStore,
    MoveFunction,
    ParamKind,
    PayloadValidationError,
    ResultLog,
    SubmissionFailed,
    Transaction,
    UnresolvedDependency,
)

PKG = "0xabc"
MAKE_WIDGET = MoveFunction("m", "make_widget", (ParamKind.OBJECT,))


def widget_stage(**kwargs):
    kwargs.setdefault("reads", {"packageId", "factory"})
    kwargs.setdefault(
        "writes",
        {
            "widget": "{packageId}::m::Widget",
            "widget_cap": "{packageId}::m::WidgetCap",
        },
    )
    return FunctionStage(
        "make_widget",
        lambda v, ctx: Transaction.of(MAKE_WIDGET.call(v["packageId"], v["factory"])),
        **kwargs,
    )


@pytest.fixture
def seeded():
    return MemoryStateStore(initial={"packageId": PKG, "factory": "0xf"})


class TestReadInputs:
    """Tests for dependency resolution."""

    @pytest.mark.asyncio
    async def test_unresolved_dependency_before_submit(self, make_ctx):
        ctx = make_ctx(store=MemoryStateStore(initial={"packageId": PKG}))
        stage = widget_stage()

        with pytest.raises(UnresolvedDependency) as exc_info:
            await stage.run(ctx)

        assert exc_info.value.key == "factory"
        assert exc_info.value.stage == "make_widget"
        assert ctx.submitter.calls == 0

    def test_reads_through_fallback(self):
        admin = MemoryStateStore(initial={"packageId": PKG})
        user = MemoryStateStore(fallback=admin, initial={"factory": "0xf"})
        assert widget_stage().read_inputs(user) == {"packageId": PKG, "factory": "0xf"}


class TestRun:
    """Tests for Stage.run."""

    @pytest.mark.asyncio
    async def test_success_commits_all_writes(self, make_ctx, seeded):
        log = ResultLog(
            [
                ChangeRecord.created(f"{PKG}::m::Widget", "0xw1"),
                ChangeRecord.created(f"{PKG}::m::WidgetCap", "0xc1"),
            ],
            digest="D1",
        )
        ctx = make_ctx(log, store=seeded)

        result = await widget_stage().run(ctx)

        assert result.writes == {"widget": "0xw1", "widget_cap": "0xc1"}
        assert result.log is log
        assert seeded.read("widget") == "0xw1"
        assert seeded.read("widget_cap") == "0xc1"
        assert seeded.flush_count == 1
        assert "make_widget" in ctx.stage_timings

    @pytest.mark.asyncio
    async def test_partial_match_commits_nothing(self, make_ctx, seeded):
        log = ResultLog([ChangeRecord.created(f"{PKG}::m::Widget", "0xw1")])
        ctx = make_ctx(log, store=seeded)
        before = seeded.snapshot()

        with pytest.raises(ExpectedEntityNotFound) as exc_info:
            await widget_stage().run(ctx)

        assert exc_info.value.key == "widget_cap"
        assert exc_info.value.expected_type == f"{PKG}::m::WidgetCap"
        assert exc_info.value.stage == "make_widget"
        assert seeded.snapshot() == before
        assert seeded.flush_count == 0

    @pytest.mark.asyncio
    async def test_no_writes_still_flushes(self, make_ctx, seeded):
        ctx = make_ctx(ResultLog(digest="D"), store=seeded)
        stage = widget_stage(writes={})

        result = await stage.run(ctx)

        assert result.writes == {}
        assert seeded.flush_count == 1
        assert seeded.snapshot() == {"packageId": PKG, "factory": "0xf"}

    @pytest.mark.asyncio
    async def test_template_can_use_earlier_write(self, make_ctx, seeded):
        stage = widget_stage(
            writes={
                "packageId2": "<published-package>",
                "thing": "{packageId2}::t::Thing",
            }
        )
        log = ResultLog(
            [
                ChangeRecord.created("0xnew::t::Thing", "0xt"),
                ChangeRecord.from_object_change({"type": "published", "packageId": "0xnew"}),
            ]
        )
        ctx = make_ctx(log, store=seeded)

        result = await stage.run(ctx)

        assert result.writes == {"packageId2": "0xnew", "thing": "0xt"}

    @pytest.mark.asyncio
    async def test_template_can_use_later_declared_write(self, make_ctx, seeded):
        stage = widget_stage(
            writes={
                "wrapper": "0x2::box::Box<{widget}>",
                "widget": "{packageId}::m::Widget",
            }
        )
        log = ResultLog(
            [
                ChangeRecord.created(f"{PKG}::m::Widget", "0xw1"),
                ChangeRecord.created("0x2::box::Box<0xw1>", "0xb1"),
            ]
        )
        ctx = make_ctx(log, store=seeded)

        result = await stage.run(ctx)

        assert stage.write_order() == ["widget", "wrapper"]
        assert result.writes == {"wrapper": "0xb1", "widget": "0xw1"}
        assert seeded.read("wrapper") == "0xb1"

    def test_write_cycle_rejected(self):
        stage = widget_stage(writes={"a": "{packageId}::m::A<{b}>", "b": "{packageId}::m::B<{a}>"})
        with pytest.raises(ValueError, match="cycle"):
            stage.write_order()

    @pytest.mark.asyncio
    async def test_async_builder(self, make_ctx, seeded):
        async def build(values, ctx):
            return Transaction.of(MAKE_WIDGET.call(values["packageId"], values["factory"]))

        stage = FunctionStage("async_widget", build, reads={"packageId", "factory"})
        ctx = make_ctx(ResultLog(), store=seeded)

        await stage.run(ctx)

        assert ctx.submitter.payloads[0].describe() == [f"{PKG}::m::make_widget"]


class TestValidation:
    """Payloads are validated before anything is submitted."""

    @pytest.mark.asyncio
    async def test_invalid_argument_is_not_submitted(self, make_ctx, seeded):
        stage = FunctionStage(
            "bad_widget",
            lambda v, ctx: Transaction.of(MAKE_WIDGET.call(v["packageId"], "not-an-id")),
            reads={"packageId"},
        )
        ctx = make_ctx(store=seeded)

        with pytest.raises(PayloadValidationError) as exc_info:
            await stage.run(ctx)

        assert exc_info.value.stage == "bad_widget"
        assert ctx.submitter.calls == 0

    @pytest.mark.asyncio
    async def test_wrong_arity_is_not_submitted(self, make_ctx, seeded):
        stage = FunctionStage(
            "short_widget",
            lambda v, ctx: Transaction.of(MAKE_WIDGET.call(v["packageId"])),
            reads={"packageId"},
        )
        ctx = make_ctx(store=seeded)

        with pytest.raises(PayloadValidationError, match="expected 1 arguments, got 0"):
            await stage.run(ctx)
        assert ctx.submitter.calls == 0


class TestSubmission:
    """Tests for submission failure mapping."""

    @pytest.mark.asyncio
    async def test_submitter_error_is_wrapped(self, make_ctx, seeded):
        cause = RuntimeError("connection reset")
        ctx = make_ctx(cause, store=seeded)
        before = seeded.snapshot()

        with pytest.raises(SubmissionFailed) as exc_info:
            await widget_stage().run(ctx)

        assert exc_info.value.cause is cause
        assert exc_info.value.stage == "make_widget"
        assert seeded.snapshot() == before

    @pytest.mark.asyncio
    async def test_submission_failed_gets_stage_name(self, make_ctx, seeded):
        ctx = make_ctx(SubmissionFailed("transaction D failed: InsufficientGas"), store=seeded)

        with pytest.raises(SubmissionFailed) as exc_info:
            await widget_stage().run(ctx)

        assert exc_info.value.stage == "make_widget"
        assert "InsufficientGas" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_no_result_log(self, make_ctx, seeded):
        ctx = make_ctx(None, store=seeded)

        with pytest.raises(SubmissionFailed, match="no result log"):
            await widget_stage().run(ctx)
