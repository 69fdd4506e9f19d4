"""
Cancellable pacing delays.

Every deliberate pause in the engine goes through a ``Pacer`` so that one
``cancel()`` wakes all pending waits at once.
"""
import asyncio
import random
from engagement_insights.exceptions import JobCancelledError


class Pacer:
    """Human-like pacing with cooperative cancellation."""

    def __init__(self, jitter: float = 0.0):
        self.jitter = jitter
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def check(self) -> None:
        """Raise if the owning job has been cancelled."""
        if self.cancelled:
            raise JobCancelledError()

    async def sleep(self, seconds: float) -> None:
        """Wait ``seconds`` (plus jitter), returning early with an error on cancel."""
        self.check()
        if self.jitter:
            seconds += random.uniform(0, self.jitter)
        if seconds <= 0:
            await asyncio.sleep(0)
            self.check()
            return
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise JobCancelledError()
