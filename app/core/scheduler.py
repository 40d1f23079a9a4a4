import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a delayed callback.

    Cancelling only has an effect while the delay is still running; once the
    callback has started it runs to completion.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self.fired = False
        self.task: Optional[asyncio.Task] = None

    def cancel(self) -> bool:
        if self.fired or self.task is None or self.task.done():
            return False
        return self.task.cancel()

    @property
    def pending(self) -> bool:
        return not self.fired and self.task is not None and not self.task.done()

    @property
    def running(self) -> bool:
        return self.fired and self.task is not None and not self.task.done()


class Scheduler:
    def schedule(
        self, delay: float, callback: Callable[[], Awaitable[None]]
    ) -> ScheduledTask:
        handle = ScheduledTask(delay)

        async def _run():
            await asyncio.sleep(delay)
            handle.fired = True
            await callback()

        handle.task = asyncio.create_task(_run())
        return handle
