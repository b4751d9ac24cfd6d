# core/debounce.py
import asyncio
import inspect
from typing import Any, Callable

from .logger import get_logger

logger = get_logger(__name__)


class Debouncer:
    """
    Trailing-edge debounce bound to the running asyncio loop.

    Every call replaces the pending arguments and restarts the timer; `fn`
    runs once, with the latest arguments, after `delay` seconds without a new
    call. `fn` may be a plain function or a coroutine function.
    """

    def __init__(self, fn: Callable[..., Any], delay: float):
        self.fn = fn
        self.delay = delay
        self._task: asyncio.Task | None = None
        # timer task that has woken up and is running fn
        self._running: asyncio.Task | None = None
        self._args: tuple = ()
        self._kwargs: dict = {}

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def __call__(self, *args, **kwargs) -> None:
        self._args = args
        self._kwargs = kwargs
        if self._task is not None:
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._fire_later())

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
        self._task = None
        self._args = ()
        self._kwargs = {}

    async def flush(self) -> None:
        """
        Wait for a call already in progress, then run the pending call now
        instead of waiting out the delay.
        """
        while self._running is not None and not self._running.done():
            await self._running
        if not self.pending:
            return
        self._task.cancel()
        self._task = None
        await self._invoke()

    async def _fire_later(self) -> None:
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            return
        self._running = asyncio.current_task()
        self._task = None
        try:
            await self._invoke()
        finally:
            if self._running is asyncio.current_task():
                self._running = None

    async def _invoke(self) -> None:
        args, kwargs = self._args, self._kwargs
        self._args = ()
        self._kwargs = {}
        try:
            result = self.fn(*args, **kwargs)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception("Debounced call to %r failed: %s", self.fn, e)


def debounce(fn: Callable[..., Any], delay_ms: float) -> Debouncer:
    return Debouncer(fn, delay_ms / 1000.0)
