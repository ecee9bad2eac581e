"""
Natural pacing for multi-message replies.

A reply is delivered as several chat messages. Between them a human would
pause for a moment and then type the next line, so the delay before each
chunk depends on how long that chunk is, with log-normal variation rather
than a flat uniform wait.
"""
import math
import random
from enum import Enum
from typing import Optional


class ChunkSize(str, Enum):
    """Size class of an outgoing chunk, which drives its pause profile."""
    SHORT = "short"      # "ok", "sure!", one-liners
    MEDIUM = "medium"    # A normal sentence or two
    LONG = "long"        # A paragraph


# Pause profiles (in seconds) before sending a chunk of each size
# base: typical pause
# variance: spread used by the "variable" mode
# max: hard cap
PACING_PROFILES = {
    ChunkSize.SHORT: {
        "base": 1.0,
        "variance": 1.0,
        "max": 3.0,
    },
    ChunkSize.MEDIUM: {
        "base": 2.0,
        "variance": 2.0,
        "max": 6.0,
    },
    ChunkSize.LONG: {
        "base": 3.5,
        "variance": 3.0,
        "max": 9.0,
    },
}

MIN_DELAY_SECONDS = 0.5


def classify_chunk(chunk: str) -> ChunkSize:
    """Classify an outgoing chunk by length."""
    length = len(chunk) if chunk else 0
    if length < 40:
        return ChunkSize.SHORT
    if length > 160:
        return ChunkSize.LONG
    return ChunkSize.MEDIUM


def calculate_pause(chunk: str, mode: str = "natural") -> float:
    """
    Calculate the pause before sending ``chunk``.

    Args:
        chunk: The message about to be sent
        mode: "uniform" (flat range), "natural" (log-normal),
              "variable" (triangular with occasional distraction)

    Returns:
        Pause in seconds (>= MIN_DELAY_SECONDS)
    """
    profile = PACING_PROFILES[classify_chunk(chunk)]

    if mode == "uniform":
        return random.uniform(profile["base"] * 0.5, profile["base"] * 1.5)

    if mode == "natural":
        delay = random.lognormvariate(math.log(profile["base"]), 0.4)
        delay += random.uniform(-0.25, 0.25)
        return max(MIN_DELAY_SECONDS, min(delay, profile["max"]))

    if mode == "variable":
        base = profile["base"]
        variance = profile["variance"]
        delay = random.triangular(max(0.0, base - variance / 2), base + variance, base)
        # 5% chance the sender "got distracted"
        if random.random() < 0.05:
            delay += random.uniform(1, 3)
        return max(MIN_DELAY_SECONDS, min(delay, profile["max"]))

    return random.uniform(1.0, 3.0)


class NaturalTiming:
    """
    Pacing service used by the delivery relay.

    Keeps the last pause so consecutive chunks do not get suspiciously
    identical waits.
    """

    def __init__(self, mode: str = "natural"):
        self.mode = mode
        self._last_delay: Optional[float] = None

    def get_delay(self, chunk: str) -> float:
        """Get the pause before sending ``chunk``."""
        delay = calculate_pause(chunk, self.mode)

        if self._last_delay is not None and abs(delay - self._last_delay) < 0.3:
            delay += random.uniform(-0.5, 0.5)

        self._last_delay = delay
        return max(MIN_DELAY_SECONDS, delay)

    def get_typing_duration(self, message_length: int) -> float:
        """
        Get how long to show the typing indicator for a chunk.

        Assumes 20-40 chars per second.

        Returns:
            Typing duration in seconds (1.0 - 6.0)
        """
        chars_per_second = random.uniform(20, 40)
        duration = message_length / chars_per_second
        return max(1.0, min(duration, 6.0))
