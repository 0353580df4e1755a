"""
Tests for the logging module.

Tests verify:
- JSON lines carry level, logger name and timestamp
- DEBUG events are filtered at INFO
- pool_context scopes ``pool_id`` and restores the outer value
"""

import json
import logging

import pytest
import structlog
from structlog.testing import LogCapture

from taskpool.core.logging import configure_logging, get_logger, pool_context
from taskpool.execution.runner import TaskPool


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


def _json_events(caplog):
    events = []
    for record in caplog.records:
        try:
            events.append(json.loads(record.getMessage()))
        except ValueError:
            continue
    return events


class TestConfigureLogging:
    def test_json_line(self, caplog, reset_structlog):
        caplog.set_level(logging.INFO)
        configure_logging(level="INFO", json_format=True)

        get_logger("taskpool.test").info("taskpool.test.event", count=3)

        payload = _json_events(caplog)[-1]
        assert payload["event"] == "taskpool.test.event"
        assert payload["count"] == 3
        assert payload["level"] == "info"
        assert payload["logger"] == "taskpool.test"
        assert payload["timestamp"].endswith("Z")

    def test_debug_suppressed_at_info(self, caplog, reset_structlog):
        caplog.set_level(logging.DEBUG)
        configure_logging(level="info", json_format=True)

        get_logger("taskpool.test").debug("taskpool.test.hidden")

        assert not any("taskpool.test.hidden" in r.getMessage() for r in caplog.records)

    def test_unknown_level_rejected(self, reset_structlog):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="chatty")

    @pytest.mark.asyncio
    async def test_run_events_carry_pool_id(self, reset_structlog):
        capture = LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])

        pool = TaskPool().extend([1, 2])
        await pool.run()

        events = [e for e in capture.entries if e["event"].startswith("taskpool.run.")]
        assert [e["event"] for e in events] == ["taskpool.run.start", "taskpool.run.complete"]
        assert {e["pool_id"] for e in events} == {pool.pool_id}


class TestPoolContext:
    def test_binds_and_unbinds(self):
        with pool_context("p-1"):
            assert structlog.contextvars.get_contextvars() == {"pool_id": "p-1"}
        assert "pool_id" not in structlog.contextvars.get_contextvars()

    def test_nested_restores_outer_pool(self):
        with pool_context("outer"):
            with pool_context("inner"):
                assert structlog.contextvars.get_contextvars()["pool_id"] == "inner"
            assert structlog.contextvars.get_contextvars()["pool_id"] == "outer"

    def test_get_logger_is_bindable(self):
        logger = get_logger(__name__)
        assert hasattr(logger, "info")
        assert hasattr(logger, "bind")
