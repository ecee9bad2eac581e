"""
Tests for the per-conversation debounce scheduler and deferred timers.
"""

import asyncio

import pytest

from relay_bot.temporal.debounce import DebounceScheduler
from relay_bot.temporal.deferred import DeferredTask

DELAY = 0.05


class Recorder:
    """Settle callback that records every call."""

    def __init__(self, hold: asyncio.Event | None = None, fail: bool = False):
        self.calls: list[tuple[str, str]] = []
        self.hold = hold
        self.fail = fail

    async def __call__(self, conversation_id: str, text: str) -> None:
        self.calls.append((conversation_id, text))
        if self.hold is not None:
            await self.hold.wait()
        if self.fail:
            raise RuntimeError("pipeline exploded")


# ============================================================================
# DeferredTask
# ============================================================================

class TestDeferredTask:

    @pytest.mark.asyncio
    async def test_fires_after_delay(self):
        fired = []

        async def callback(task):
            fired.append(task)

        task = DeferredTask(DELAY, callback).start()
        assert task.pending
        await task.wait()

        assert fired == [task]
        assert task.fired
        assert not task.pending

    @pytest.mark.asyncio
    async def test_cancel_before_fire(self):
        fired = []

        async def callback(task):
            fired.append(task)

        task = DeferredTask(DELAY, callback).start()
        assert task.cancel() is True
        await asyncio.sleep(DELAY * 3)

        assert fired == []
        assert task.cancelled

    @pytest.mark.asyncio
    async def test_cancel_after_fire_does_not_interrupt_callback(self):
        release = asyncio.Event()
        finished = []

        async def callback(task):
            await release.wait()
            finished.append(True)

        task = DeferredTask(0, callback).start()
        await asyncio.sleep(DELAY)
        assert task.fired

        assert task.cancel() is False
        release.set()
        await task.wait()
        assert finished == [True]

    @pytest.mark.asyncio
    async def test_fire_now_skips_wait(self):
        fired = []

        async def callback(task):
            fired.append(True)

        task = DeferredTask(60, callback).start()
        task.fire_now()
        await asyncio.wait_for(task.wait(), timeout=1)
        assert fired == [True]

    def test_negative_delay_rejected(self):
        async def callback(task):
            pass

        with pytest.raises(ValueError):
            DeferredTask(-1, callback)


# ============================================================================
# DebounceScheduler
# ============================================================================

class TestDebounceScheduler:

    @pytest.mark.asyncio
    async def test_burst_settles_once_with_last_message(self):
        recorder = Recorder()
        scheduler = DebounceScheduler(recorder, delay_seconds=DELAY)

        for text in ["hi", "are you there?", "I need help"]:
            scheduler.on_message("chat-1", text)
            await asyncio.sleep(DELAY / 5)

        assert scheduler.pending_text("chat-1") == "I need help"
        await asyncio.sleep(DELAY * 4)

        assert recorder.calls == [("chat-1", "I need help")]

    @pytest.mark.asyncio
    async def test_spaced_messages_settle_independently(self):
        recorder = Recorder()
        scheduler = DebounceScheduler(recorder, delay_seconds=DELAY)

        scheduler.on_message("chat-1", "first")
        await asyncio.sleep(DELAY * 4)
        scheduler.on_message("chat-1", "second")
        await asyncio.sleep(DELAY * 4)

        assert recorder.calls == [("chat-1", "first"), ("chat-1", "second")]

    @pytest.mark.asyncio
    async def test_conversations_are_independent(self):
        recorder = Recorder()
        scheduler = DebounceScheduler(recorder, delay_seconds=DELAY)

        scheduler.on_message("chat-1", "a")
        scheduler.on_message("chat-2", "b")
        scheduler.on_message("chat-1", "c")
        await asyncio.sleep(DELAY * 4)

        assert sorted(recorder.calls) == [("chat-1", "c"), ("chat-2", "b")]

    @pytest.mark.asyncio
    async def test_entries_removed_after_success(self):
        recorder = Recorder()
        scheduler = DebounceScheduler(recorder, delay_seconds=DELAY)

        scheduler.on_message("chat-1", "hello")
        assert scheduler.has_pending("chat-1")
        await asyncio.sleep(DELAY * 4)

        assert not scheduler.has_entries("chat-1")
        assert scheduler.pending_text("chat-1") is None
        assert scheduler.active_pipelines == 0

    @pytest.mark.asyncio
    async def test_entries_removed_after_failure(self):
        recorder = Recorder(fail=True)
        scheduler = DebounceScheduler(recorder, delay_seconds=DELAY)

        scheduler.on_message("chat-1", "hello")
        await asyncio.sleep(DELAY * 4)

        assert recorder.calls == [("chat-1", "hello")]
        assert not scheduler.has_entries("chat-1")

        # A later message starts a fresh cycle
        recorder.fail = False
        scheduler.on_message("chat-1", "again")
        await asyncio.sleep(DELAY * 4)
        assert recorder.calls[-1] == ("chat-1", "again")

    @pytest.mark.asyncio
    async def test_new_message_during_pipeline_starts_fresh_cycle(self):
        hold = asyncio.Event()
        recorder = Recorder(hold=hold)
        scheduler = DebounceScheduler(recorder, delay_seconds=DELAY)

        scheduler.on_message("chat-1", "first")
        await asyncio.sleep(DELAY * 3)
        assert scheduler.active_pipelines == 1

        # Arrives while "first" is still being answered
        scheduler.on_message("chat-1", "second")
        assert scheduler.has_pending("chat-1")

        # Finishing the first pipeline must not wipe the new cycle
        hold.set()
        await asyncio.sleep(0)
        assert scheduler.pending_text("chat-1") == "second"

        await asyncio.sleep(DELAY * 4)
        assert recorder.calls == [("chat-1", "first"), ("chat-1", "second")]
        assert not scheduler.has_entries("chat-1")

    @pytest.mark.asyncio
    async def test_pending_conversation_ids(self):
        recorder = Recorder()
        scheduler = DebounceScheduler(recorder, delay_seconds=60)

        scheduler.on_message("chat-1", "a")
        scheduler.on_message("chat-2", "b")
        assert sorted(scheduler.pending_conversation_ids()) == ["chat-1", "chat-2"]

        await scheduler.cancel_all()

    @pytest.mark.asyncio
    async def test_cancel_all_drops_buffers(self):
        recorder = Recorder()
        scheduler = DebounceScheduler(recorder, delay_seconds=DELAY)

        scheduler.on_message("chat-1", "a")
        scheduler.on_message("chat-2", "b")
        await scheduler.cancel_all()
        await asyncio.sleep(DELAY * 4)

        assert recorder.calls == []
        assert not scheduler.has_entries("chat-1")
        assert not scheduler.has_entries("chat-2")

    @pytest.mark.asyncio
    async def test_flush_all_settles_immediately(self):
        recorder = Recorder()
        scheduler = DebounceScheduler(recorder, delay_seconds=60)

        scheduler.on_message("chat-1", "a")
        scheduler.on_message("chat-2", "b")
        await asyncio.wait_for(scheduler.flush_all(), timeout=1)

        assert sorted(recorder.calls) == [("chat-1", "a"), ("chat-2", "b")]
        assert scheduler.pending_conversation_ids() == []

    @pytest.mark.asyncio
    async def test_wait_idle_waits_for_running_pipeline(self):
        hold = asyncio.Event()
        recorder = Recorder(hold=hold)
        scheduler = DebounceScheduler(recorder, delay_seconds=0)

        scheduler.on_message("chat-1", "a")
        await asyncio.sleep(DELAY)
        assert scheduler.active_pipelines == 1

        waiter = asyncio.create_task(scheduler.wait_idle())
        await asyncio.sleep(DELAY)
        assert not waiter.done()

        hold.set()
        await asyncio.wait_for(waiter, timeout=1)
        assert scheduler.active_pipelines == 0

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            DebounceScheduler(Recorder(), delay_seconds=-1)
