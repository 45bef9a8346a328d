"""Cancellable periodic task tied to the lifetime of a screen."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


class PeriodicTask:
    """Run a callback immediately and then on a fixed interval until stopped.

    ``start()`` schedules the loop on the running event loop and ``stop()``
    cancels it; the task is also an async context manager so a screen can
    scope polling to its own lifetime. A failing callback is logged and the
    next tick still runs.
    """

    def __init__(
        self,
        callback: Callable[[], Awaitable[Any] | Any],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        name: str = "periodic-task",
    ) -> None:
        """Initialize a stopped task.

        Args:
            callback: Sync or async callable invoked on every tick
            interval_seconds: Seconds between ticks
            name: Label for logs and the asyncio task

        Raises:
            ValueError: If interval_seconds is not positive
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.callback = callback
        self.interval_seconds = interval_seconds
        self.name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> "PeriodicTask":
        """Begin ticking. Starting a running task is a no-op.

        Raises:
            RuntimeError: If called outside a running event loop
        """
        if self.is_running:
            return self
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=self.name)
        logger.debug(f"Started {self.name} every {self.interval_seconds}s")
        return self

    def stop(self) -> None:
        """Cancel the loop. Safe to call when already stopped."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug(f"Stopped {self.name}")

    async def wait_stopped(self) -> None:
        """Stop and wait for the loop to finish unwinding."""
        task = self._task
        self.stop()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> "PeriodicTask":
        return self.start()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.wait_stopped()

    async def _run(self) -> None:
        while True:
            await self._tick()
            await asyncio.sleep(self.interval_seconds)

    async def _tick(self) -> None:
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"{self.name} tick failed: {e}")
