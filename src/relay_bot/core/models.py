"""
Pydantic models for the relay bot.

Covers the inbound message shape handed to the core, the runtime configuration
and the outcome of a settle pipeline.
"""
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

# Fixed core constants
SETTLE_DELAY_SECONDS = 7.0
MAX_RETRIES = 3
FALLBACK_ANSWER = "I didn't understand, could you repeat?"
TRANSCRIPTION_APOLOGY = "Sorry, I couldn't process the audio."


class AIBackend(str, Enum):
    """Language model backend selected at startup."""
    GPT = "GPT"
    GEMINI = "GEMINI"


class MessageKind(str, Enum):
    """Kind of inbound message as far as the relay cares."""
    TEXT = "text"
    VOICE = "voice"
    OTHER = "other"


class InboundMessage(BaseModel):
    """A single inbound chat message, already detached from the Telethon event."""
    conversation_id: str
    sender_address: str
    message_id: int
    kind: MessageKind = MessageKind.TEXT
    body: Optional[str] = None
    media_ref: Optional[Any] = None  # Telethon message used to download media
    is_group: bool = False
    is_self: bool = False
    is_broadcast: bool = False
    timestamp: datetime = Field(default_factory=datetime.now)


class RelayConfig(BaseModel):
    """Runtime configuration for the relay bot."""
    ai_selected: AIBackend = AIBackend.GEMINI

    # Gemini (stateless backend)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.0-flash"
    gemini_prompt: Optional[str] = None  # System instruction

    # OpenAI Assistants (stateful backend)
    openai_api_key: Optional[str] = None
    openai_assistant_id: Optional[str] = None
    openai_poll_interval: float = 1.0  # Seconds between run status checks

    # Speech-to-text
    assemblyai_api_key: str
    temp_dir: Path

    # Telegram session
    telegram_api_id: Optional[int] = None
    telegram_api_hash: Optional[str] = None
    telegram_session: str = "relay_bot"

    # Core behaviour (fixed)
    settle_delay_seconds: float = SETTLE_DELAY_SECONDS
    max_retries: int = MAX_RETRIES

    # Delivery pacing
    timing_mode: str = "natural"  # "uniform", "natural", "variable"
    typing_simulation: bool = True


class SettleResult(BaseModel):
    """Outcome of one settle pipeline run (generate -> split -> deliver)."""
    conversation_id: str
    prompt: str
    answer: Optional[str] = None
    chunks: list[str] = Field(default_factory=list)
    delivered: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None
