"""
Debounce Scheduler - coalesces bursts of messages per conversation.

Each conversation owns at most one buffered text and one settle timer:
1. When a message arrives, its text replaces whatever was buffered for that
   conversation (only the latest message of a burst is answered)
2. Any pending settle timer for the conversation is cancelled and a new one
   is armed with the fixed settle delay
3. When the timer expires, the settle callback runs once with the text
   buffered at that moment
4. Once the callback finishes (success or failure), the buffer and timer
   entries owned by that timer are removed

A message that arrives while a previous settle pipeline is still running
starts a fresh cycle. The running pipeline is not cancelled, and its cleanup
leaves the newer cycle's entries alone.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from relay_bot.core.models import SETTLE_DELAY_SECONDS
from relay_bot.temporal.deferred import DeferredTask

logger = logging.getLogger(__name__)

# Signature: async def callback(conversation_id: str, text: str) -> None
SettleCallback = Callable[[str, str], Awaitable[None]]


class DebounceScheduler:
    """
    Per-conversation debounce of incoming text.

    Attributes:
        delay_seconds: Quiet period after the last message before settling
        settle_callback: Async function run once per settled burst

    Example:
        async def settle(conversation_id: str, text: str) -> None:
            print(f"Answering {conversation_id}: {text}")

        scheduler = DebounceScheduler(settle_callback=settle)
        scheduler.on_message("12345", "hello")
        scheduler.on_message("12345", "are you there?")  # replaces "hello"
    """

    def __init__(
        self,
        settle_callback: SettleCallback,
        delay_seconds: float = SETTLE_DELAY_SECONDS,
    ):
        if delay_seconds < 0:
            raise ValueError("Settle delay must be non-negative")
        self._buffers: dict[str, str] = {}
        self._timers: dict[str, DeferredTask] = {}
        self._in_flight: set[DeferredTask] = set()
        self._settle_callback = settle_callback
        self._delay_seconds = delay_seconds

        logger.debug(f"DebounceScheduler initialized: delay_seconds={delay_seconds}")

    def on_message(self, conversation_id: str, text: str) -> None:
        """
        Buffer ``text`` for a conversation and (re)arm its settle timer.

        Must be called from inside the running event loop. Nothing here
        awaits, so the replace/cancel/rearm sequence is atomic with respect
        to other handlers.

        Args:
            conversation_id: Conversation the message belongs to
            text: Message text (replaces any previously buffered text)
        """
        replaced = conversation_id in self._buffers
        self._buffers[conversation_id] = text

        existing = self._timers.get(conversation_id)
        if existing is not None and existing.cancel():
            logger.debug(f"Cancelled pending settle timer for {conversation_id}")

        timer = DeferredTask(
            self._delay_seconds,
            lambda fired: self._settle(conversation_id, fired),
            name=f"settle:{conversation_id}",
        )
        self._timers[conversation_id] = timer
        timer.start()

        logger.debug(
            f"{'Replaced' if replaced else 'Buffered'} text for {conversation_id}, "
            f"settling in {self._delay_seconds:.1f}s"
        )

    async def _settle(self, conversation_id: str, timer: DeferredTask) -> None:
        """Run the settle callback for a fired timer, then clean up its entries."""
        text: Optional[str] = self._buffers.get(conversation_id)
        self._in_flight.add(timer)
        try:
            if text is None:
                logger.debug(f"No buffered text for {conversation_id}, nothing to settle")
                return
            logger.info(f"Settling {conversation_id} ({len(text)} chars)")
            await self._settle_callback(conversation_id, text)
        except Exception as e:
            logger.error(f"Settle pipeline failed for {conversation_id}: {e}")
        finally:
            self._in_flight.discard(timer)
            # A newer cycle may own the entries by now
            if self._timers.get(conversation_id) is timer:
                del self._timers[conversation_id]
                self._buffers.pop(conversation_id, None)

    def has_pending(self, conversation_id: str) -> bool:
        """Check if a conversation has a buffered text waiting for its timer."""
        timer = self._timers.get(conversation_id)
        return timer is not None and timer.pending

    def has_entries(self, conversation_id: str) -> bool:
        """Check if any buffer or timer entry exists for a conversation."""
        return conversation_id in self._buffers or conversation_id in self._timers

    def pending_text(self, conversation_id: str) -> Optional[str]:
        """Get the currently buffered text for a conversation without settling."""
        return self._buffers.get(conversation_id)

    def pending_conversation_ids(self) -> list[str]:
        """Get all conversation IDs whose settle timer has not fired yet."""
        return [cid for cid, timer in self._timers.items() if timer.pending]

    @property
    def active_pipelines(self) -> int:
        """Number of settle pipelines currently running."""
        return len(self._in_flight)

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    async def flush_all(self) -> None:
        """
        Fire every pending timer immediately and wait for the pipelines.

        Useful for graceful shutdown when buffered messages should still be
        answered.
        """
        timers = [t for t in self._timers.values() if t.pending]
        logger.info(f"Flushing {len(timers)} pending conversation(s)")
        for timer in timers:
            timer.fire_now()
        await self.wait_idle(extra=timers)

    async def cancel_all(self) -> None:
        """Cancel all pending timers and drop their buffered text."""
        cancelled = 0
        for conversation_id, timer in list(self._timers.items()):
            if timer.cancel():
                cancelled += 1
                del self._timers[conversation_id]
                self._buffers.pop(conversation_id, None)
        logger.info(f"Cancelled {cancelled} pending settle timer(s)")

    async def wait_idle(self, extra: Optional[list[DeferredTask]] = None) -> None:
        """Wait until all running settle pipelines have finished."""
        timers = set(self._in_flight)
        if extra:
            timers.update(extra)
        if timers:
            await asyncio.gather(*(t.wait() for t in timers))

    def __repr__(self) -> str:
        return (
            f"DebounceScheduler(delay_seconds={self._delay_seconds}, "
            f"pending={len(self.pending_conversation_ids())}, "
            f"active_pipelines={self.active_pipelines})"
        )
