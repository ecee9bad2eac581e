"""Core relay bot modules."""

from relay_bot.core.errors import (
    ConfigurationError,
    DeliveryError,
    GenerationError,
    RelayBotError,
    TranscriptionError,
)
from relay_bot.core.models import (
    AIBackend,
    InboundMessage,
    MessageKind,
    RelayConfig,
    SettleResult,
)

__all__ = [
    "AIBackend",
    "InboundMessage",
    "MessageKind",
    "RelayConfig",
    "SettleResult",
    "RelayBotError",
    "ConfigurationError",
    "TranscriptionError",
    "GenerationError",
    "DeliveryError",
]
