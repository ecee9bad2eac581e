"""Temporal processing modules (deferred timers, per-conversation debouncing)."""

from relay_bot.temporal.debounce import DebounceScheduler
from relay_bot.temporal.deferred import DeferredTask

__all__ = [
    "DebounceScheduler",
    "DeferredTask",
]
