"""External service integrations (AssemblyAI transcription, Telethon event parsing)."""

from relay_bot.integrations.media_detector import classify_event, detect_kind, should_relay
from relay_bot.integrations.transcriber import VoiceTranscriber

__all__ = [
    "VoiceTranscriber",
    "classify_event",
    "detect_kind",
    "should_relay",
]
