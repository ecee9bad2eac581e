"""Human-like reply shaping: splitting answers and pacing their delivery."""

from relay_bot.humanizer.splitter import split_reply
from relay_bot.humanizer.timing import NaturalTiming

__all__ = [
    "split_reply",
    "NaturalTiming",
]
