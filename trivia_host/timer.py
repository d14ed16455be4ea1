"""One-second countdown driven by an asyncio task."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Countdown:
    """At most one ticking task at a time.

    start() cancels any task already running before creating a new one, and
    cancel() is safe to call repeatedly. Used as an async context manager the
    task is cancelled on every exit path.
    """

    def __init__(self, on_tick: Callable[[], Awaitable[None]], interval: float = 1.0) -> None:
        self._on_tick = on_tick
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.cancel()
        self._task = asyncio.create_task(self._run(), name="countdown")

    def cancel(self) -> None:
        # Called from inside a tick callback: the loop sees it was replaced and exits.
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        self._task = None

    async def aclose(self) -> None:
        task, self._task = self._task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        me = asyncio.current_task()
        while self._task is me:
            await asyncio.sleep(self._interval)
            if self._task is not me:
                break
            await self._on_tick()

    async def __aenter__(self) -> "Countdown":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
