"""
Tests for mizu observability.
"""
import json
import logging
from unittest.mock import MagicMock

from mizu.pipeline import JSONLogger, PipelineLogger


class TestJSONLogger:
    """Tests for JSONLogger."""

    def test_emits_json(self, caplog):
        log = JSONLogger(name="mizu.test", request_id="req-1")

        with caplog.at_level(logging.INFO, logger="mizu.test"):
            log.info("Stage completed", stage="public_mint", writes=["mint"])

        record = json.loads(caplog.records[0].getMessage())
        assert record["message"] == "Stage completed"
        assert record["level"] == "info"
        assert record["request_id"] == "req-1"
        assert record["stage"] == "public_mint"
        assert record["writes"] == ["mint"]
        assert "timestamp" in record

    def test_level_maps_to_stdlib(self, caplog):
        log = JSONLogger(name="mizu.test")

        with caplog.at_level(logging.DEBUG, logger="mizu.test"):
            log.warning("careful")
            log.error("broken")

        assert [r.levelno for r in caplog.records] == [logging.WARNING, logging.ERROR]

    def test_with_context(self, caplog):
        log = JSONLogger(name="mizu.test", extra_context={"actor": "admin"})
        child = log.with_context(stage="publish")

        with caplog.at_level(logging.INFO, logger="mizu.test"):
            child.info("hello")

        record = json.loads(caplog.records[0].getMessage())
        assert record["actor"] == "admin"
        assert record["stage"] == "publish"
        assert log.extra_context == {"actor": "admin"}

    def test_non_serializable_values(self, caplog):
        log = JSONLogger(name="mizu.test")

        with caplog.at_level(logging.INFO, logger="mizu.test"):
            log.info("path", path=object())

        assert "path" in json.loads(caplog.records[0].getMessage())


class TestPipelineLogger:
    """Tests for PipelineLogger."""

    def test_default_inner_logger_carries_actor(self):
        log = PipelineLogger(request_id="r1", actor="user1")
        assert isinstance(log.inner, JSONLogger)
        assert log.inner.request_id == "r1"
        assert log.inner.extra_context == {"actor": "user1"}

    def test_stage_events(self):
        inner = MagicMock()
        log = PipelineLogger(request_id="r1", inner=inner)

        log.stage_started("public_mint", ["packageId"])
        log.stage_completed("public_mint", 12.5, digest="D1", writes=["mint"])
        log.stage_failed("reveal_mint", "unresolved_dependency", "Unresolved dependency 'image'")

        inner.debug.assert_called_once_with("Stage started", stage="public_mint", reads=["packageId"])
        inner.info.assert_called_once_with(
            "Stage completed",
            stage="public_mint",
            duration_ms=12.5,
            digest="D1",
            writes=["mint"],
        )
        inner.error.assert_called_once_with(
            "Stage failed",
            stage="reveal_mint",
            kind="unresolved_dependency",
            error="Unresolved dependency 'image'",
        )

    def test_pipeline_completed(self):
        inner = MagicMock()
        log = PipelineLogger(request_id="r1", inner=inner)

        log.pipeline_completed(success=True, duration_ms=10.0, stages_run=2)
        log.pipeline_completed(success=False, duration_ms=5.0, stages_run=1, error="boom")

        assert inner.info.call_args.kwargs["stages_run"] == 2
        assert inner.error.call_args.kwargs["error"] == "boom"
