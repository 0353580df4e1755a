"""Task pool runner: the public entry point.

WHY
───
Callers hand over a flat list of heterogeneous work (values, callables,
awaitables) and want back one answer: which units succeeded and which did
not, in the order they were given.  The runner wires the pieces together
for one invocation and throws them away afterwards.

ARCHITECTURE
────────────
::

    run(tasks, concurrency_limit, max_retry, wait_time)
      └── TaskPool(config).extend(tasks).run()
            ├── normalize_tasks()              ─ tasks.py
            ├── CancellationSignal()           ─ cancellation.py
            ├── ConcurrencyLimitedExecutor()   ─ executor.py
            ├── RetryDriver(executor.run_pass) ─ retry.py
            └── aggregate_results(slots)       ─ aggregate.py
                  → AggregatedResult(resolve=[...], reject=[...])

Example::

    async def fetch(stop):
        return await client.get(url)

    result = await run([fetch, "cached", some_future], concurrency_limit=4)
    result.to_dict()   # {"resolve": [...], "reject": [...]}
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from taskpool.core.errors import ConfigError, InvalidTaskListError, TaskPoolError
from taskpool.core.logging import get_logger, pool_context
from taskpool.core.settings import TaskPoolSettings, get_settings
from taskpool.execution.aggregate import AggregatedResult, aggregate_results
from taskpool.execution.cancellation import CancellationSignal
from taskpool.execution.executor import ConcurrencyLimitedExecutor, PassOutcome
from taskpool.execution.retry import RetryDriver
from taskpool.execution.tasks import normalize_tasks

logger = get_logger(__name__)


class RunConfig(BaseModel):
    """Validated, immutable options for one run.

    ``concurrency_limit`` below 1 is clamped to 1.  Negative ``max_retry``
    or ``wait_time`` are rejected, as are unknown option names.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    concurrency_limit: int = 10
    max_retry: int = Field(default=2, ge=0)
    wait_time: float = Field(default=0.0, ge=0)

    @field_validator("concurrency_limit")
    @classmethod
    def clamp_concurrency(cls, value: int) -> int:
        if value < 1:
            logger.warning(
                "taskpool.config.clamped",
                field="concurrency_limit",
                value=value,
                clamped_to=1,
            )
            return 1
        return value

    @classmethod
    def create(cls, **options: Any) -> RunConfig:
        """Build a config, raising :class:`ConfigError` on invalid options."""
        try:
            return cls(**options)
        except ValidationError as exc:
            raise ConfigError(f"Invalid run configuration: {exc}", cause=exc) from exc

    @classmethod
    def from_settings(cls, settings: TaskPoolSettings | None = None) -> RunConfig:
        if settings is None:
            try:
                settings = get_settings()
            except ValidationError as exc:
                raise ConfigError(
                    f"Invalid TASKPOOL_* environment settings: {exc}", cause=exc
                ) from exc
        return cls.create(
            concurrency_limit=settings.concurrency_limit,
            max_retry=settings.max_retry,
            wait_time=settings.wait_time,
        )

    @classmethod
    def resolve(cls, base: RunConfig | None = None, **overrides: Any) -> RunConfig:
        """Merge non-``None`` overrides onto ``base`` (default: settings)."""
        base = base or cls.from_settings()
        options = base.model_dump()
        options.update({key: value for key, value in overrides.items() if value is not None})
        return cls.create(**options)


@dataclass
class RunReport:
    """Metrics for one completed run."""

    pool_id: str
    total: int
    passes: int
    attempts: list[int]
    completed: list[int]
    stopped: bool
    stop_reason: str | None
    peak_in_flight: int
    started_at: datetime
    completed_at: datetime
    outcomes: list[PassOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.completed)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def duration_seconds(self) -> float:
        """Wall-clock duration of the entire run."""
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging / API responses."""
        return {
            "pool_id": self.pool_id,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "passes": self.passes,
            "attempts": list(self.attempts),
            "stopped": self.stopped,
            "stop_reason": self.stop_reason,
            "peak_in_flight": self.peak_in_flight,
            "duration_seconds": self.duration_seconds,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def _materialize(tasks: Any) -> list[Any]:
    if tasks is None:
        raise InvalidTaskListError("tasks must be an iterable of units, got None")
    if isinstance(tasks, (str, bytes, bytearray, Mapping)):
        raise InvalidTaskListError(
            f"tasks must be an ordered collection of units, got {type(tasks).__name__}"
        )
    try:
        return list(tasks)
    except TypeError as exc:
        raise InvalidTaskListError(
            f"tasks must be iterable, got {type(tasks).__name__}", cause=exc
        ) from exc


def _close_coroutines(tasks: Any) -> None:
    if not isinstance(tasks, (list, tuple)):
        return
    for task in tasks:
        if inspect.iscoroutine(task):
            task.close()


class TaskPool:
    """Bounded-concurrency runner with pass-level retries.

    Use :meth:`add` / :meth:`extend` to enqueue units, then :meth:`run`.
    Each :meth:`run` call builds fresh cancellation and completion state;
    the metrics of the latest run are kept on :attr:`last_report`.

    Parameters
    ----------
    config : RunConfig, optional
        Base options (default: from :class:`TaskPoolSettings`).
    **options
        ``concurrency_limit``, ``max_retry``, ``wait_time`` overrides;
        ``None`` values are ignored, unknown names raise :class:`ConfigError`.
    """

    def __init__(self, config: RunConfig | None = None, **options: Any) -> None:
        self._config = RunConfig.resolve(config, **options)
        self._raw_tasks: list[Any] = []
        self._pool_id = str(uuid.uuid4())
        self.last_report: RunReport | None = None

    # ── Building ─────────────────────────────────────────────────────

    def add(self, task: Any) -> TaskPool:
        """Add one unit (value, ``fn(stop)`` callable or awaitable).

        Returns:
            ``self`` for fluent chaining.
        """
        self._raw_tasks.append(task)
        return self

    def extend(self, tasks: Iterable[Any]) -> TaskPool:
        self._raw_tasks.extend(_materialize(tasks))
        return self

    # ── Execution ────────────────────────────────────────────────────

    async def run(self) -> AggregatedResult:
        """Run every unit and return the aggregated outcome.

        Never raises for unit failures; those end up in ``reject``.
        """
        config = self._config
        tasks = normalize_tasks(self._raw_tasks)
        started_at = datetime.now(UTC)

        if not tasks:
            self.last_report = RunReport(
                pool_id=self._pool_id,
                total=0,
                passes=0,
                attempts=[],
                completed=[],
                stopped=False,
                stop_reason=None,
                peak_in_flight=0,
                started_at=started_at,
                completed_at=started_at,
            )
            return AggregatedResult()

        signal = CancellationSignal()
        executor = ConcurrencyLimitedExecutor(tasks, signal, config.concurrency_limit)
        driver = RetryDriver(
            executor.run_pass,
            signal,
            max_retry=config.max_retry,
            wait_time=config.wait_time,
            has_pending=executor.has_pending,
        )

        with pool_context(self._pool_id):
            logger.info(
                "taskpool.run.start",
                total=len(tasks),
                concurrency_limit=config.concurrency_limit,
                max_retry=config.max_retry,
                wait_time=config.wait_time,
            )
            try:
                await driver.run()
            finally:
                executor.discard_unlaunched()

            result = await aggregate_results(executor.slots)

            report = RunReport(
                pool_id=self._pool_id,
                total=len(tasks),
                passes=driver.passes,
                attempts=list(executor.attempts),
                completed=sorted(executor.completed),
                stopped=signal.stopped,
                stop_reason=signal.reason,
                peak_in_flight=executor.peak_in_flight,
                started_at=started_at,
                completed_at=datetime.now(UTC),
                outcomes=list(executor.outcomes),
            )
            self.last_report = report

            logger.info(
                "taskpool.run.complete",
                succeeded=report.succeeded,
                failed=report.failed,
                passes=report.passes,
                stopped=report.stopped,
                duration_seconds=report.duration_seconds,
            )

        return result

    # ── Inspection ───────────────────────────────────────────────────

    @property
    def config(self) -> RunConfig:
        return self._config

    @property
    def task_count(self) -> int:
        """Number of units queued."""
        return len(self._raw_tasks)

    @property
    def pool_id(self) -> str:
        return self._pool_id


async def run(
    tasks: Iterable[Any],
    concurrency_limit: int | None = None,
    max_retry: int | None = None,
    wait_time: float | None = None,
    *,
    config: RunConfig | None = None,
) -> AggregatedResult:
    """Run ``tasks`` with bounded concurrency and pass-level retries.

    Args:
        tasks: Ordered units: plain values, callables taking the ``stop``
            trigger, or awaitables already in flight.
        concurrency_limit: Maximum in-flight units (default 10, clamped to >= 1).
        max_retry: Pass budget (default 2; 0 runs a single pass).
        wait_time: Seconds between passes (default 0).
        config: Base options; explicit arguments above take precedence.

    Returns:
        :class:`AggregatedResult` with ``resolve`` and/or ``reject`` in
        task order.

    Raises:
        InvalidTaskListError: ``tasks`` is not an ordered collection.
        ConfigError: Negative ``max_retry`` or ``wait_time``, or invalid
            ``TASKPOOL_*`` settings.

    Coroutines in ``tasks`` are closed when either error is raised.
    """
    try:
        pool = TaskPool(
            config,
            concurrency_limit=concurrency_limit,
            max_retry=max_retry,
            wait_time=wait_time,
        )
        pool.extend(tasks)
    except TaskPoolError:
        _close_coroutines(tasks)
        raise
    return await pool.run()


def run_sync(
    tasks: Iterable[Any],
    concurrency_limit: int | None = None,
    max_retry: int | None = None,
    wait_time: float | None = None,
    *,
    config: RunConfig | None = None,
) -> AggregatedResult:
    """Blocking variant of :func:`run` for callers without an event loop."""
    return asyncio.run(
        run(
            tasks,
            concurrency_limit,
            max_retry,
            wait_time,
            config=config,
        )
    )


__all__ = ["RunConfig", "RunReport", "TaskPool", "run", "run_sync"]
