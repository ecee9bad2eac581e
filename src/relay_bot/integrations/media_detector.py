"""
Classification of incoming Telethon events.

Turns a ``events.NewMessage`` event into an InboundMessage and decides whether
the relay core should see it at all. Only one-to-one text and voice messages
from other people make it through; groups, channels (broadcasts), our own
outgoing messages and every other media type are dropped here.
"""
from typing import Any, Optional

from telethon.tl.types import MessageMediaWebPage

from relay_bot.core.models import InboundMessage, MessageKind


def detect_kind(message: Any) -> MessageKind:
    """
    Detect the relay-relevant kind of a Telethon message.

    Voice notes and audio files are both treated as voice. Non-blank text is
    text when it carries no media or only a link preview. Anything else
    (photos, stickers, documents, text captions on media) is other.
    """
    if getattr(message, "voice", None) or getattr(message, "audio", None):
        return MessageKind.VOICE
    media = getattr(message, "media", None)
    has_text = bool((getattr(message, "raw_text", None) or "").strip())
    if has_text and (media is None or isinstance(media, MessageMediaWebPage)):
        return MessageKind.TEXT
    return MessageKind.OTHER


def classify_event(event: Any, self_id: Optional[int] = None) -> InboundMessage:
    """
    Build an InboundMessage from a Telethon NewMessage event.

    Args:
        event: Telethon NewMessage event
        self_id: Telegram ID of the logged-in account, used to spot self messages

    Returns:
        InboundMessage with filtering flags set
    """
    message = event.message
    kind = detect_kind(message)
    sender_id = event.sender_id

    is_self = bool(getattr(event, "out", False)) or (
        self_id is not None and sender_id == self_id
    )

    return InboundMessage(
        conversation_id=str(event.chat_id),
        sender_address=str(sender_id if sender_id is not None else event.chat_id),
        message_id=message.id,
        kind=kind,
        body=message.raw_text if kind == MessageKind.TEXT else None,
        media_ref=message if kind == MessageKind.VOICE else None,
        is_group=bool(getattr(event, "is_group", False)),
        is_self=is_self,
        is_broadcast=bool(getattr(event, "is_channel", False)) and not bool(getattr(event, "is_group", False)),
    )


def should_relay(message: InboundMessage) -> bool:
    """Check whether a message belongs to the relay core."""
    if message.is_group or message.is_self or message.is_broadcast:
        return False
    return message.kind in (MessageKind.TEXT, MessageKind.VOICE)
