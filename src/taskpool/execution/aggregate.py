"""Result aggregation: partition settled handles into successes and failures."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from taskpool.core.errors import format_error


@dataclass
class AggregatedResult:
    """Final outcome of a run.

    ``resolve`` holds success values and ``reject`` stringified errors, both
    in task-list order.  A field is ``None`` when that side is empty; both
    are ``None`` only for an empty task list.
    """

    resolve: list[Any] | None = None
    reject: list[str] | None = None

    @property
    def succeeded(self) -> int:
        return len(self.resolve or [])

    @property
    def failed(self) -> int:
        return len(self.reject or [])

    @property
    def ok(self) -> bool:
        """True when nothing failed."""
        return not self.reject

    @property
    def is_empty(self) -> bool:
        return self.resolve is None and self.reject is None

    def to_dict(self) -> dict[str, list[Any]]:
        """Only the present keys, e.g. ``{"resolve": [1, 2]}``."""
        result: dict[str, list[Any]] = {}
        if self.resolve is not None:
            result["resolve"] = self.resolve
        if self.reject is not None:
            result["reject"] = self.reject
        return result


async def aggregate_results(slots: Sequence[asyncio.Future[Any] | None]) -> AggregatedResult:
    """Await every slot in index order and build the :class:`AggregatedResult`.

    Slots that were never launched (``None``, only after a stop) are left
    out of both lists.
    """
    if not slots:
        return AggregatedResult()

    resolve: list[Any] = []
    reject: list[str] = []

    for slot in slots:
        if slot is None:
            continue
        try:
            resolve.append(await slot)
        except asyncio.CancelledError as exc:
            if not slot.cancelled():
                raise
            reject.append(format_error(exc))
        except Exception as exc:
            reject.append(format_error(exc))

    if resolve and not reject:
        return AggregatedResult(resolve=resolve)
    if reject and not resolve:
        return AggregatedResult(reject=reject)
    return AggregatedResult(resolve=resolve, reject=reject)


__all__ = ["AggregatedResult", "aggregate_results"]
