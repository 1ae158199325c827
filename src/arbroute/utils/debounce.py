"""Debouncing for rapidly changing inputs.

Used for the transfer amount so that quotes are requested only after the
user has stopped typing for a moment.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Delivers the last value pushed within a quiet window.

    Example:
        debouncer = Debouncer(0.3, on_amount)
        debouncer.push("1")
        debouncer.push("10")   # only "10" reaches on_amount, 0.3s later
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[T], Awaitable[None]],
        name: str = "debouncer",
    ):
        """Initialize the debouncer.

        Args:
            delay: Quiet window in seconds (0 = deliver on the next loop turn)
            callback: Coroutine function receiving the settled value
            name: Description for logging
        """
        self.delay = delay
        self.callback = callback
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def is_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def push(self, value: T) -> None:
        """Schedule delivery of `value`, replacing anything not yet delivered."""
        self.cancel()
        self._task = asyncio.ensure_future(self._deliver_later(value))

    async def _deliver_later(self, value: T) -> None:
        await asyncio.sleep(self.delay)
        logger.debug(f"{self.name}: delivering settled value {value!r}")
        await self.callback(value)

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Wait until the scheduled delivery (if any) has run."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            logger.debug(f"{self.name}: delivery superseded")
