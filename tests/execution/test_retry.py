"""Tests for the pass-level retry driver."""

import pytest

from taskpool.execution.cancellation import CancellationSignal
from taskpool.execution.retry import RetryDriver


# ── Helpers ──────────────────────────────────────────────────────────────


class FakePasses:
    """Stand-in for ``executor.run_pass`` returning scripted results."""

    def __init__(self, results, signal=None, stop_on=None):
        self.results = list(results)
        self.calls = 0
        self.signal = signal
        self.stop_on = stop_on

    async def __call__(self) -> bool:
        self.calls += 1
        if self.signal is not None and self.calls == self.stop_on:
            self.signal.stop()
        return self.results.pop(0) if self.results else False


# ── RetryDriver ──────────────────────────────────────────────────────────


class TestRetryDriver:
    @pytest.mark.asyncio
    async def test_stops_on_first_complete_pass(self, sleep_calls):
        passes = FakePasses([True])
        driver = RetryDriver(passes, CancellationSignal(), max_retry=3)
        assert await driver.run() is True
        assert passes.calls == 1
        assert driver.passes == 1
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_runs_exactly_budget_when_always_failing(self, sleep_calls):
        passes = FakePasses([False] * 10)
        driver = RetryDriver(passes, CancellationSignal(), max_retry=3)
        assert await driver.run() is False
        assert passes.calls == 3

    @pytest.mark.asyncio
    async def test_zero_budget_runs_one_pass(self, sleep_calls):
        passes = FakePasses([False])
        driver = RetryDriver(passes, CancellationSignal(), max_retry=0)
        await driver.run()
        assert passes.calls == 1

    @pytest.mark.asyncio
    async def test_success_on_second_pass(self, sleep_calls):
        passes = FakePasses([False, True])
        driver = RetryDriver(passes, CancellationSignal(), max_retry=2)
        assert await driver.run() is True
        assert passes.calls == 2

    @pytest.mark.asyncio
    async def test_waits_between_passes_only(self, sleep_calls):
        passes = FakePasses([False, False, False])
        driver = RetryDriver(passes, CancellationSignal(), max_retry=3, wait_time=0.5)
        await driver.run()
        assert sleep_calls == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_zero_wait_never_sleeps(self, sleep_calls):
        passes = FakePasses([False, False])
        driver = RetryDriver(passes, CancellationSignal(), max_retry=2)
        await driver.run()
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_no_pending_units_ends_loop(self, sleep_calls):
        passes = FakePasses([False] * 3)
        driver = RetryDriver(
            passes,
            CancellationSignal(),
            max_retry=3,
            wait_time=1.0,
            has_pending=lambda: False,
        )
        assert await driver.run() is False
        assert passes.calls == 1
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_pending_units_keep_the_loop_going(self, sleep_calls):
        passes = FakePasses([False, False, True])
        driver = RetryDriver(
            passes,
            CancellationSignal(),
            max_retry=3,
            wait_time=0.2,
            has_pending=lambda: True,
        )
        assert await driver.run() is True
        assert passes.calls == 3
        assert sleep_calls == [0.2, 0.2]

    @pytest.mark.asyncio
    async def test_stop_during_pass_ends_loop_without_wait(self, sleep_calls):
        signal = CancellationSignal()
        passes = FakePasses([False] * 5, signal=signal, stop_on=1)
        driver = RetryDriver(passes, signal, max_retry=5, wait_time=1.0)
        assert await driver.run() is False
        assert passes.calls == 1
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_already_stopped_runs_nothing(self, sleep_calls):
        signal = CancellationSignal()
        signal.stop()
        passes = FakePasses([True])
        driver = RetryDriver(passes, signal, max_retry=2)
        assert await driver.run() is False
        assert passes.calls == 0
        assert driver.passes == 0
