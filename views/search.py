"""
Debounced input and out-of-order response protection
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set
from core.config import settings
from core.exceptions import ConsoleException

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Runs ``callback`` once input has been quiet for ``delay`` seconds.

    Later input cancels a pending trigger that is still waiting out its
    quiet period. A callback that has already started is left to finish.
    """

    def __init__(self, callback: Callable[..., Awaitable[Any]], delay: Optional[float] = None):
        self.callback = callback
        self.delay = settings.SEARCH_DEBOUNCE_SECONDS if delay is None else delay
        self._pending: Optional[asyncio.Task] = None
        self._running: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def trigger(self, *args) -> None:
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._fire(args))

    def cancel(self) -> None:
        if self.pending:
            self._pending.cancel()
        self._pending = None

    async def _fire(self, args) -> None:
        await asyncio.sleep(self.delay)
        task = asyncio.current_task()
        # detached: trigger() can no longer cancel this run
        self._pending = None
        self._running.add(task)
        try:
            await self.callback(*args)
        except ConsoleException as e:
            logger.error(f"Debounced call failed: {e}")
        finally:
            self._running.discard(task)

    async def wait(self) -> None:
        """Wait until the pending trigger and every started callback are done."""
        tasks = [t for t in [self._pending, *self._running] if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


class RequestSequencer:
    """
    Tags requests with increasing tickets; only the latest ticket's
    response may be applied.
    """

    def __init__(self):
        self._latest = 0

    def next(self) -> int:
        self._latest += 1
        return self._latest

    @property
    def latest(self) -> int:
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest
