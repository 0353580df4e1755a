"""Execution layer: normalization, cancellation, scheduling, retries, aggregation."""

from taskpool.execution.aggregate import AggregatedResult, aggregate_results
from taskpool.execution.cancellation import CancellationSignal, StopFn
from taskpool.execution.executor import ConcurrencyLimitedExecutor, PassOutcome
from taskpool.execution.retry import RetryDriver
from taskpool.execution.runner import RunConfig, RunReport, TaskPool, run, run_sync
from taskpool.execution.tasks import (
    AwaitableTask,
    CallableTask,
    Task,
    ValueTask,
    normalize_task,
    normalize_tasks,
)

__all__ = [
    "AggregatedResult",
    "aggregate_results",
    "CancellationSignal",
    "StopFn",
    "ConcurrencyLimitedExecutor",
    "PassOutcome",
    "RetryDriver",
    "RunConfig",
    "RunReport",
    "TaskPool",
    "run",
    "run_sync",
    "AwaitableTask",
    "CallableTask",
    "Task",
    "ValueTask",
    "normalize_task",
    "normalize_tasks",
]
