"""Single-slot task registry and cooperative cancellation."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("growthpath.pipeline")


class GenerationCancelled(Exception):
    """Raised at a checkpoint once the owning pipeline has been cancelled."""


class CancellationToken:
    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise GenerationCancelled()


class GenerationSlot:
    """Holds at most one live generation task.

    ``claim`` checks and fills the slot without yielding to the event loop, so
    concurrent triggers while a task is live are no-ops. The slot empties from
    the task's done callback, which runs however the task finishes.
    """

    def __init__(self) -> None:
        self._task: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def claim(self, factory: Callable[[], Awaitable[None]]) -> Optional[asyncio.Task]:
        if self.busy:
            return None
        task = asyncio.ensure_future(factory())
        self._task = task
        task.add_done_callback(self._release)
        return task

    def cancel(self) -> None:
        task = self._task
        if task is not None and not task.done():
            task.cancel()

    async def wait(self) -> None:
        """Wait until the slot is empty, including tasks claimed meanwhile."""

        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    def _release(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Roadmap generation task crashed", exc_info=exc)


__all__ = ["CancellationToken", "GenerationCancelled", "GenerationSlot"]
