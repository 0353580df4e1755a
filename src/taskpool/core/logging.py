"""
structlog setup for taskpool.

Every module logs through ``get_logger(__name__)`` with dotted event names
(``taskpool.pass.complete``) and keyword fields.  A run wraps its work in
:func:`pool_context`, so each event carries the ``pool_id`` of the run that
produced it, even when several pools share one event loop::

    configure_logging(level="DEBUG", json_format=False)
    with pool_context(pool.pool_id):
        logger.info("taskpool.run.start", total=3)

Nothing is configured on import; until :func:`configure_logging` (or
``taskpool.setup_logging``) runs, structlog's defaults apply.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor


def _renderer(json_format: bool) -> list[Processor]:
    if json_format:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(level: str = "INFO", json_format: bool | None = None) -> None:
    """Route taskpool events through the stdlib root logger.

    Args:
        level: Minimum level name, e.g. ``"DEBUG"``.  Per-pass events are
            logged at DEBUG, run and retry events at INFO, unit failures
            at WARNING.
        json_format: One JSON object per line when True, coloured console
            lines when False.  ``None`` picks JSON unless stdout is a TTY.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")
    if json_format is None:
        json_format = not sys.stdout.isatty()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.dev.set_exc_info,
            *_renderer(json_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


@contextmanager
def pool_context(pool_id: str) -> Iterator[None]:
    """Bind ``pool_id`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(pool_id=pool_id):
        yield


__all__ = ["configure_logging", "get_logger", "pool_context"]
