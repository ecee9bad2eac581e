"""
Deferred Task - a cancellable "run this coroutine after N seconds" handle.

A DeferredTask has two phases:
1. Waiting: sleeping for ``delay`` seconds. cancel() stops it here and the
   callback never runs. fire_now() skips the remaining wait.
2. Fired: the callback is running (or finished). cancel() is a no-op from this
   point on, so whatever the callback started is never interrupted by a
   later reschedule.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

# Callback receives the DeferredTask that fired it
DeferredCallback = Callable[["DeferredTask"], Awaitable[None]]


class DeferredTask:
    """Cancellable deferred execution of an async callback."""

    def __init__(self, delay: float, callback: DeferredCallback, name: Optional[str] = None):
        if delay < 0:
            raise ValueError("Delay must be non-negative")
        self.delay = delay
        self.name = name or "deferred"
        self._callback = callback
        self._wake = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._fired = False
        self._cancelled = False

    def start(self) -> "DeferredTask":
        """Arm the timer. Must be called from inside a running event loop."""
        if self._task is not None:
            raise RuntimeError(f"{self.name} already started")
        self._task = asyncio.create_task(self._run(), name=self.name)
        return self

    async def _run(self) -> None:
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=self.delay)
        except asyncio.TimeoutError:
            pass
        if self._cancelled:
            return
        self._fired = True
        await self._callback(self)

    def cancel(self) -> bool:
        """
        Cancel the timer if it is still waiting.

        Returns:
            True if the callback will not run, False if it already fired
        """
        if self._fired:
            return False
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    def fire_now(self) -> None:
        """Skip the remaining wait and run the callback as soon as possible."""
        if not self._fired and not self._cancelled:
            self._wake.set()

    async def wait(self) -> None:
        """Wait until the timer is finished (fired callback done, or cancelled)."""
        if self._task is not None:
            await asyncio.wait([self._task])

    @property
    def pending(self) -> bool:
        """True while the timer is armed and has not fired or been cancelled."""
        return self._task is not None and not self._fired and not self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def __repr__(self) -> str:
        state = "fired" if self._fired else "cancelled" if self._cancelled else "pending"
        return f"DeferredTask(name={self.name!r}, delay={self.delay}, state={state})"
