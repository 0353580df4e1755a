"""Environment-driven defaults for taskpool runs.

``TaskPoolSettings`` holds the process-wide defaults that
:class:`~taskpool.execution.runner.RunConfig` falls back to.  Values are read
from ``TASKPOOL_*`` environment variables and an optional ``.env`` file.

Example::

    $ TASKPOOL_CONCURRENCY_LIMIT=4 TASKPOOL_WAIT_TIME=0.5 python worker.py

    >>> get_settings().concurrency_limit
    4

Tags:
    settings, configuration, pydantic, environment, taskpool
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskPoolSettings(BaseSettings):
    """Defaults shared by every run in the process.

    Fields
    ──────
    concurrency_limit : Maximum simultaneously in-flight units
    max_retry         : Pass budget (0 still runs one pass)
    wait_time         : Seconds to sleep between passes
    log_level         : Structlog log level
    log_json          : JSON logs (True), console (False), auto (None)
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKPOOL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Execution ────────────────────────────────────────────────
    concurrency_limit: int = 10
    max_retry: int = Field(default=2, ge=0)
    wait_time: float = Field(default=0.0, ge=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None


@lru_cache(maxsize=1)
def get_settings() -> TaskPoolSettings:
    """Cached settings, loaded once per process."""
    return TaskPoolSettings()


def setup_logging(settings: TaskPoolSettings | None = None) -> None:
    """Configure structlog from ``log_level`` / ``log_json``."""
    from taskpool.core.logging import configure_logging

    settings = settings or get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)
