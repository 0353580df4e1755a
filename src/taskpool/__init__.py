"""
taskpool: bounded-concurrency execution with pass-level retries.

Run a list of values, ``fn(stop)`` callables and awaitables with at most
``concurrency_limit`` in flight, retry the failures, and get back the
successes and failures in input order::

    from taskpool import run

    result = await run([fetch_a, fetch_b, 42], concurrency_limit=2, max_retry=3)
    result.resolve   # success values, task order
    result.reject    # "ExceptionType: message" strings, task order
"""

from taskpool.core.errors import (
    ConfigError,
    InvalidTaskListError,
    StopRequested,
    TaskFailedError,
    TaskPoolError,
)
from taskpool.core.logging import configure_logging
from taskpool.core.settings import TaskPoolSettings, get_settings, setup_logging
from taskpool.execution.aggregate import AggregatedResult
from taskpool.execution.runner import RunConfig, RunReport, TaskPool, run, run_sync

__version__ = "0.1.0"

__all__ = [
    "AggregatedResult",
    "ConfigError",
    "InvalidTaskListError",
    "RunConfig",
    "RunReport",
    "StopRequested",
    "TaskFailedError",
    "TaskPool",
    "TaskPoolError",
    "TaskPoolSettings",
    "configure_logging",
    "get_settings",
    "setup_logging",
    "run",
    "run_sync",
]
