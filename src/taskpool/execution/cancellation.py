"""Cooperative stop signal shared by one run.

Every callable unit receives ``signal.stop`` as its only argument.  Calling
it sets a one-way flag that the executor checks before launching any new
unit; units already running are never interrupted.

Example::

    async def fetch(stop):
        page = await client.get(url)
        if page.status == 403:
            stop("credentials revoked")   # fail this unit, start no others
        return page.body
"""

from __future__ import annotations

from collections.abc import Callable

from taskpool.core.errors import StopRequested
from taskpool.core.logging import get_logger

logger = get_logger(__name__)

StopFn = Callable[..., None]


class CancellationSignal:
    """One-way stop flag plus the trigger injected into units."""

    def __init__(self) -> None:
        self._stopped = False
        self._reason: str | None = None
        self._stop_count = 0

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def reason(self) -> str | None:
        """Message of the first ``stop(message)`` call, if any."""
        return self._reason

    @property
    def stop_count(self) -> int:
        return self._stop_count

    def stop(self, message: str | None = None) -> None:
        """Request a cooperative stop.

        Args:
            message: When truthy, also fail the calling unit by raising
                :class:`StopRequested` with this message.

        Raises:
            StopRequested: If ``message`` is given.
        """
        first = not self._stopped
        self._stopped = True
        self._stop_count += 1
        if message and self._reason is None:
            self._reason = str(message)

        if first:
            logger.info("taskpool.stop.requested", reason=message or None)

        if message:
            raise StopRequested(str(message))

    def __repr__(self) -> str:
        return f"CancellationSignal(stopped={self._stopped}, reason={self._reason!r})"
