"""Concurrency-Limited Executor: one pass over the task list.

WHY
───
Each pass launches every not-yet-successful unit, in order, while keeping
at most ``concurrency_limit`` units in flight.  The executor owns the state
that survives between passes: the completion set and the results slot
array.

ARCHITECTURE
────────────
::

    ConcurrencyLimitedExecutor(tasks, signal, concurrency_limit)
      ├── .run_pass()      ─ scan, launch under a semaphore, wait for all
      ├── .slots           ─ latest handle per index (None = never launched)
      ├── .completed       ─ indices that succeeded (grows only)
      ├── .attempts        ─ launches per index
      └── .peak_in_flight  ─ highest simultaneous in-flight count seen

    for i, task in tasks:
        stop set?            → end scan
        i completed?         → skip
        awaitable launched?  → skip (cannot be relaunched)
        acquire semaphore    → suspends while the limit is reached
        launch, slots[i] = handle
    gather(all slots, return_exceptions=True)

A handle's done-callback releases its semaphore slot and, on success only,
adds its index to ``completed``.  Failed indices stay eligible for the next
pass.

Related modules:
    tasks.py   - Task.launch() produces the handles
    retry.py   - RetryDriver calls run_pass() repeatedly
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from taskpool.core.errors import format_error, is_retryable
from taskpool.core.logging import get_logger
from taskpool.execution.cancellation import CancellationSignal
from taskpool.execution.tasks import Task

logger = get_logger(__name__)


@dataclass
class PassOutcome:
    """Summary of one executor pass."""

    number: int
    launched: int
    succeeded: int
    failed: int
    complete: bool
    stopped: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "pass": self.number,
            "launched": self.launched,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "complete": self.complete,
            "stopped": self.stopped,
        }


class ConcurrencyLimitedExecutor:
    """Launch tasks with a bound on simultaneously in-flight units.

    Parameters
    ----------
    tasks : list[Task]
        Normalized tasks; list position is each task's identity.
    signal : CancellationSignal
        Checked before every launch; its ``stop`` is injected into callables.
    concurrency_limit : int
        Maximum simultaneous in-flight units.  Values below 1 are clamped.
    """

    def __init__(
        self,
        tasks: list[Task],
        signal: CancellationSignal,
        concurrency_limit: int = 10,
    ) -> None:
        self._tasks = tasks
        self._signal = signal
        self._limit = max(concurrency_limit, 1)
        self._in_flight: set[asyncio.Future[Any]] = set()
        self._pass_number = 0

        self.slots: list[asyncio.Future[Any] | None] = [None] * len(tasks)
        self.completed: set[int] = set()
        self.attempts: list[int] = [0] * len(tasks)
        self.peak_in_flight = 0
        self.outcomes: list[PassOutcome] = []

    @property
    def concurrency_limit(self) -> int:
        return self._limit

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def is_complete(self) -> bool:
        return len(self.completed) >= len(self._tasks)

    def has_pending(self) -> bool:
        """True while some failed unit could be launched on a later pass."""
        return any(
            not self._should_skip(index, task) for index, task in enumerate(self._tasks)
        )

    # ── Execution ────────────────────────────────────────────────────

    def _should_skip(self, index: int, task: Task) -> bool:
        if index in self.completed:
            return True
        return not task.retryable and self.attempts[index] > 0

    def _launch(self, index: int, task: Task, sem: asyncio.Semaphore) -> asyncio.Future[Any]:
        handle = task.launch(self._signal.stop)
        self.slots[index] = handle
        self.attempts[index] += 1
        self._in_flight.add(handle)
        self.peak_in_flight = max(self.peak_in_flight, len(self._in_flight))

        def _settled(fut: asyncio.Future[Any]) -> None:
            self._in_flight.discard(fut)
            sem.release()
            if fut.cancelled():
                return
            error = fut.exception()
            if error is None:
                self.completed.add(index)
                return
            logger.warning(
                "taskpool.task.failed",
                task_index=index,
                attempt=self.attempts[index],
                error=format_error(error),
                retryable=is_retryable(error) and task.retryable,
            )

        handle.add_done_callback(_settled)
        return handle

    async def run_pass(self) -> bool:
        """Run one pass. Returns True when every index has succeeded."""
        self._pass_number += 1
        sem = asyncio.Semaphore(self._limit)
        launched: list[asyncio.Future[Any]] = []
        completed_before = len(self.completed)

        logger.debug(
            "taskpool.pass.start",
            pass_number=self._pass_number,
            pending=len(self._tasks) - completed_before,
            concurrency_limit=self._limit,
        )

        try:
            for index, task in enumerate(self._tasks):
                if self._signal.stopped:
                    break
                if self._should_skip(index, task):
                    continue

                await sem.acquire()
                if self._signal.stopped:
                    sem.release()
                    break

                launched.append(self._launch(index, task, sem))

            pending = [slot for slot in self.slots if slot is not None]
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        except asyncio.CancelledError:
            for handle in launched:
                handle.cancel()
            await asyncio.gather(*launched, return_exceptions=True)
            raise

        succeeded = len(self.completed) - completed_before
        outcome = PassOutcome(
            number=self._pass_number,
            launched=len(launched),
            succeeded=succeeded,
            failed=len(launched) - succeeded,
            complete=self.is_complete,
            stopped=self._signal.stopped,
        )
        self.outcomes.append(outcome)
        logger.info("taskpool.pass.complete", **outcome.to_dict())
        return outcome.complete

    def discard_unlaunched(self) -> None:
        """Release units that never got a slot (only after a stop)."""
        for index, task in enumerate(self._tasks):
            if self.slots[index] is None:
                task.discard()


__all__ = ["ConcurrencyLimitedExecutor", "PassOutcome"]
