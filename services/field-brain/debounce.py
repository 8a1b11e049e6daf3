"""Debounced triggering of async work.

Calls arriving within the window coalesce into one: each call cancels the
pending timer and starts a new one, so only the last call fires. Work that
has already started is never cancelled.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self, func: Callable[[], Awaitable[object]], wait_seconds: float):
        self._func = func
        self._wait = wait_seconds
        self._timer: asyncio.Task | None = None
        self._running: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def __call__(self) -> asyncio.Task:
        """Schedule the function; returns the timer task for this call."""
        if self.pending:
            self._timer.cancel()
            logger.debug("debounce: superseded pending call")
        self._timer = asyncio.get_running_loop().create_task(self._fire_later())
        return self._timer

    def cancel(self):
        """Drop a pending call. In-flight work keeps running."""
        if self.pending:
            self._timer.cancel()

    async def _fire_later(self):
        await asyncio.sleep(self._wait)
        # started work outlives its timer
        task = asyncio.ensure_future(self._func())
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        return await asyncio.shield(task)

    async def drain(self):
        """Wait for the pending timer and any in-flight work to finish."""
        if self._timer is not None:
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)
