"""
Structured error types for taskpool.

Provides a small hierarchy of typed errors with metadata for retry
decisions and structured logging.

Task-level failures never escape :func:`taskpool.run`; they are captured
per index and reported in the aggregated result.  The errors defined here
cover the two other cases:

- **Boundary errors:** bad configuration or a malformed task list.  These
  are raised before any task is touched.
- **Cooperative stop:** :class:`StopRequested` is what a unit raises when it
  calls ``stop("message")``.  It is recorded as that unit's failure.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────┐
        │                     TaskPoolError                        │
        │        (category, retryable, context, cause)             │
        ├─────────────────────────────────────────────────────────┤
        │                                                          │
        │  ConfigError          InvalidTaskListError               │
        │  (CONFIG)             (VALIDATION)                       │
        │                                                          │
        │  StopRequested        TaskFailedError                    │
        │  (CANCELLED)          (EXECUTION, retryable)             │
        └─────────────────────────────────────────────────────────┘

Examples:
    >>> error = ConfigError("max_retry must be >= 0")
    >>> error.retryable
    False
    >>> error.to_dict()["category"]
    'CONFIG'

    >>> format_error(ValueError("bad row"))
    'ValueError: bad row'

Tags:
    error-handling, exception-hierarchy, retry-logic, taskpool
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"             # Invalid run options
    VALIDATION = "VALIDATION"     # Malformed task list
    EXECUTION = "EXECUTION"       # A unit raised or its awaitable failed
    CANCELLED = "CANCELLED"       # A unit requested a cooperative stop
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        task_index: Position of the unit in the task list
        attempt: 1-based pass number on which the error happened
        pool_id: Identifier of the run that produced the error
        metadata: Additional key-value pairs
    """

    task_index: int | None = None
    attempt: int | None = None
    pool_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ["task_index", "attempt", "pool_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TaskPoolError(Exception):
    """
    Base exception for all taskpool errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    callers only pass a message in the common case.

    Examples:
        >>> error = TaskPoolError("unexpected state")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = TaskPoolError("bad").with_context(task_index=3)
        >>> error.context.task_index
        3
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TaskPoolError:
        """
        Add context to this error (fluent API).

        Usage:
            raise TaskFailedError("failed").with_context(task_index=2, attempt=1)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# BOUNDARY ERRORS (Never Retryable)
# =============================================================================


class ConfigError(TaskPoolError):
    """Invalid run options, e.g. a negative ``max_retry`` or ``wait_time``."""

    default_category = ErrorCategory.CONFIG


class InvalidTaskListError(TaskPoolError):
    """The ``tasks`` argument is not an ordered collection of units."""

    default_category = ErrorCategory.VALIDATION


# =============================================================================
# EXECUTION ERRORS
# =============================================================================


class StopRequested(TaskPoolError):
    """
    Raised by ``stop(message)`` from inside a unit.

    The global stop flag is already set when this is raised; the error
    only marks the calling unit as failed.
    """

    default_category = ErrorCategory.CANCELLED


class TaskFailedError(TaskPoolError):
    """Generic unit failure, for callers that want a retryable taskpool error."""

    default_category = ErrorCategory.EXECUTION
    default_retryable = True


# =============================================================================
# HELPERS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """
    Whether ``error`` should be retried on a later pass.

    Non-taskpool exceptions are retryable: a unit's own failure is retried
    until the pass budget is spent.  ``StopRequested`` is not.
    """
    if isinstance(error, TaskPoolError):
        return error.retryable
    return True


def format_error(error: BaseException) -> str:
    """Stringify a unit failure as ``"<ExceptionType>: <message>"``."""
    name = type(error).__name__
    message = str(error)
    if not message:
        return name
    return f"{name}: {message}"


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TaskPoolError",
    "ConfigError",
    "InvalidTaskListError",
    "StopRequested",
    "TaskFailedError",
    "is_retryable",
    "format_error",
]
