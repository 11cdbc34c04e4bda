"""
Cancellation Epoch — invalidates in-flight work on interrupt or new input.

Every pipeline run captures a token from begin(). Before it appends to
history or emits anything, it asks is_current(token). An interrupt calls
abort(), which advances the counter and cancels the tracked task, so the
superseded run stops at its next suspension point and any result that
still arrives afterwards fails the check and is discarded.
"""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class CancellationEpoch:
    def __init__(self) -> None:
        self._value = 0
        self._task: asyncio.Task | None = None

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        self._value += 1
        return self._value

    def begin(self) -> int:
        """Start a new unit of work; earlier tokens become stale."""
        return self.advance()

    def is_current(self, token: int) -> bool:
        return token == self._value

    def track(self, task: asyncio.Task) -> None:
        """Register the task that abort() should cancel."""
        self._task = task
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task) -> None:
        if self._task is task:
            self._task = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def abort(self) -> bool:
        """Advance the epoch and cancel any in-flight task.

        Returns True if a running task was signalled.
        """
        self.advance()
        task = self._task
        if task is None or task.done():
            return False
        task.cancel()
        logger.debug("Aborted in-flight task at epoch %d", self._value)
        return True

    async def drain(self) -> None:
        """Wait for the tracked task to finish, whatever its outcome."""
        task = self._task
        if task is None or task.done():
            return
        await asyncio.wait({task})
