"""Pass-level retry loop.

A run is a sequence of *passes*.  Each pass hands every still-failing unit
to the executor once; the driver decides whether another pass happens and
sleeps ``wait_time`` seconds before it.

    budget = max(max_retry, 1)
    while budget:
        stop requested?        → end
        run_pass() complete?   → end
        nothing left to retry? → end
        sleep(wait_time)       (skipped when 0, after the last pass, or once stopped)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from taskpool.core.logging import get_logger
from taskpool.execution.cancellation import CancellationSignal

logger = get_logger(__name__)


class RetryDriver:
    """Run passes until everything succeeded, the budget is spent, or a stop.

    Parameters
    ----------
    run_pass : callable
        Coroutine function running one executor pass; returns True when
        every unit has succeeded.
    signal : CancellationSignal
        Shared stop flag; once set, no further pass starts.
    max_retry : int
        Pass budget.  ``0`` still runs a single pass.
    wait_time : float
        Seconds to sleep between two passes.
    has_pending : callable, optional
        Reports whether any failed unit can still be launched again.  When
        it returns False the remaining budget is not spent.
    """

    def __init__(
        self,
        run_pass: Callable[[], Awaitable[bool]],
        signal: CancellationSignal,
        *,
        max_retry: int = 2,
        wait_time: float = 0.0,
        has_pending: Callable[[], bool] | None = None,
    ) -> None:
        self._run_pass = run_pass
        self._signal = signal
        self._budget = max(max_retry, 1)
        self._wait_time = max(wait_time, 0.0)
        self._has_pending = has_pending
        self.passes = 0

    async def run(self) -> bool:
        """Drive passes. Returns True if the last pass reported full success."""
        remaining = self._budget
        complete = False

        while remaining > 0:
            if self._signal.stopped:
                logger.info("taskpool.retry.stopped", passes=self.passes)
                break
            remaining -= 1
            self.passes += 1

            complete = await self._run_pass()
            if complete or remaining == 0 or self._signal.stopped:
                break

            if self._has_pending is not None and not self._has_pending():
                logger.info("taskpool.retry.exhausted", passes=self.passes)
                break

            if self._wait_time > 0:
                logger.info(
                    "taskpool.retry.wait",
                    next_pass=self.passes + 1,
                    delay_seconds=self._wait_time,
                )
                await asyncio.sleep(self._wait_time)

        return complete


__all__ = ["RetryDriver"]
