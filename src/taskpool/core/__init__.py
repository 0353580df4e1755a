"""Shared infrastructure: errors, logging and settings."""

from taskpool.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidTaskListError,
    StopRequested,
    TaskFailedError,
    TaskPoolError,
    format_error,
    is_retryable,
)
from taskpool.core.logging import configure_logging, get_logger, pool_context
from taskpool.core.settings import TaskPoolSettings, get_settings, setup_logging

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidTaskListError",
    "StopRequested",
    "TaskFailedError",
    "TaskPoolError",
    "format_error",
    "is_retryable",
    "pool_context",
    "configure_logging",
    "get_logger",
    "TaskPoolSettings",
    "get_settings",
    "setup_logging",
]
