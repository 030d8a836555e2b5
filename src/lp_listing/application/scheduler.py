"""RefreshScheduler: periodic, non-overlapping, pausable refresh.

- ``run_once`` holds an asyncio.Lock; a run requested while another is in
  flight is skipped rather than queued.
- ``pause(holder)`` / ``resume(holder)`` track who needs a stable snapshot
  (an open dialog, say); refreshes are skipped while any holder remains.
- Errors inside a refresh are logged and the loop keeps its schedule.
"""

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RefreshScheduler:
    def __init__(self, refresh: Callable[[], Awaitable[object]], interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval_seconds}")
        self._refresh = refresh
        self.interval_seconds = interval_seconds
        self._lock = asyncio.Lock()
        self._holders: set[str] = set()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def paused(self) -> bool:
        return bool(self._holders)

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    @property
    def holders(self) -> frozenset[str]:
        return frozenset(self._holders)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="listing-refresh")
        logger.info("Listing refresh scheduled every %.0fs", self.interval_seconds)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Listing refresh stopped")

    def pause(self, holder: str) -> None:
        self._holders.add(holder)
        logger.debug("Refresh paused by %s", holder)

    def resume(self, holder: str) -> None:
        self._holders.discard(holder)
        logger.debug("Refresh resumed by %s (%d holders left)", holder, len(self._holders))

    async def run_once(self) -> bool:
        """Run one refresh now; False if skipped (paused or overlapping) or failed."""
        if self.paused:
            logger.debug("Refresh skipped: paused by %s", sorted(self._holders))
            return False
        if self._lock.locked():
            logger.debug("Refresh skipped: previous run still in flight")
            return False
        async with self._lock:
            try:
                await self._refresh()
            except Exception:
                logger.exception("Listing refresh failed")
                return False
        return True

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
