"""Task normalization: turn any list element into a launchable unit.

A run accepts three kinds of element:

============================  =====================  ===========
Input                         Task                   Retryable
============================  =====================  ===========
plain value (incl. ``None``)  :class:`ValueTask`     yes
callable ``fn(stop)``         :class:`CallableTask`  yes
awaitable / future / coro     :class:`AwaitableTask` no
============================  =====================  ===========

Every task exposes :meth:`Task.launch`, which returns an ``asyncio.Future``
so the executor handles all three forms the same way.  Callables are
invoked inside a new asyncio task, so a synchronous ``raise`` becomes the
unit's failure instead of escaping into the scheduler.
"""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from taskpool.execution.cancellation import StopFn


class Task(ABC):
    """A unit of work that can be launched on the running event loop."""

    retryable: bool = True

    @abstractmethod
    def launch(self, stop: StopFn) -> asyncio.Future[Any]:
        """Start the unit and return a handle to its outcome."""
        ...

    def discard(self) -> None:
        """Release resources held by a unit that was never launched."""


class ValueTask(Task):
    """An immediate value, resolved as soon as it is launched."""

    def __init__(self, value: Any) -> None:
        self.value = value

    def launch(self, stop: StopFn) -> asyncio.Future[Any]:
        future = asyncio.get_running_loop().create_future()
        future.set_result(self.value)
        return future

    def __repr__(self) -> str:
        return f"ValueTask({self.value!r})"


class CallableTask(Task):
    """A callable invoked with the stop trigger on every launch."""

    def __init__(self, fn: Callable[[StopFn], Any]) -> None:
        self.fn = fn

    async def _invoke(self, stop: StopFn) -> Any:
        result = self.fn(stop)
        if inspect.isawaitable(result):
            result = await result
        return result

    def launch(self, stop: StopFn) -> asyncio.Future[Any]:
        return asyncio.ensure_future(self._invoke(stop))

    def __repr__(self) -> str:
        name = getattr(self.fn, "__qualname__", None) or repr(self.fn)
        return f"CallableTask({name})"


class AwaitableTask(Task):
    """An operation that is already in flight.

    It never receives the stop trigger and cannot be relaunched: every call
    to :meth:`launch` returns the same handle.  A bare coroutine is only
    scheduled on the first launch so that it counts against the
    concurrency limit.
    """

    retryable = False

    def __init__(self, awaitable: Awaitable[Any]) -> None:
        self.awaitable = awaitable
        self._future: asyncio.Future[Any] | None = None

    @property
    def launched(self) -> bool:
        return self._future is not None

    def launch(self, stop: StopFn) -> asyncio.Future[Any]:
        if self._future is None:
            self._future = asyncio.ensure_future(self.awaitable)
        return self._future

    def discard(self) -> None:
        if self._future is None and inspect.iscoroutine(self.awaitable):
            self.awaitable.close()

    def __repr__(self) -> str:
        return f"AwaitableTask({self.awaitable!r})"


def normalize_task(raw: Any) -> Task:
    """Map one raw list element onto a :class:`Task`. Never fails."""
    if isinstance(raw, Task):
        return raw
    if inspect.isawaitable(raw):
        return AwaitableTask(raw)
    if callable(raw):
        return CallableTask(raw)
    return ValueTask(raw)


def normalize_tasks(raw_tasks: Iterable[Any]) -> list[Task]:
    return [normalize_task(raw) for raw in raw_tasks]


__all__ = [
    "Task",
    "ValueTask",
    "CallableTask",
    "AwaitableTask",
    "normalize_task",
    "normalize_tasks",
]
