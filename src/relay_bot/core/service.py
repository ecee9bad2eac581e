"""
Telegram Service wrapper for the relay.
Sends reply chunks with typing simulation and human-like pauses.
"""
import asyncio
import logging
from typing import Optional

from telethon import TelegramClient
from telethon.tl.functions.messages import SetTypingRequest
from telethon.tl.types import SendMessageTypingAction

from relay_bot.core.errors import DeliveryError
from relay_bot.core.models import RelayConfig
from relay_bot.humanizer.timing import NaturalTiming

logger = logging.getLogger(__name__)


def create_client(config: RelayConfig) -> TelegramClient:
    """Create (but do not start) the Telethon client for the configured session."""
    return TelegramClient(
        config.telegram_session,
        config.telegram_api_id,
        config.telegram_api_hash,
    )


class TelegramService:
    """Delivery relay: sends ordered chunks to a chat with human-like pacing."""

    def __init__(
        self,
        client: TelegramClient,
        timing: Optional[NaturalTiming] = None,
        typing_simulation: bool = True,
    ):
        self.client = client
        self.timing = timing or NaturalTiming()
        self.typing_simulation = typing_simulation

    async def send_messages_with_delay(
        self,
        messages: list[str],
        target: int | str,
    ) -> int:
        """
        Send each message in order, pausing and "typing" before each one.

        Args:
            messages: Ordered chunks to send
            target: Chat ID (or username) to send to

        Returns:
            Number of messages sent

        Raises:
            DeliveryError: If a send fails; chunks after it are not sent
        """
        sent = 0
        for text in messages:
            await asyncio.sleep(self.timing.get_delay(text))

            if self.typing_simulation:
                await self._simulate_typing(target, text)

            try:
                await self.client.send_message(target, text)
            except Exception as e:
                raise DeliveryError(
                    f"Failed to send message {sent + 1}/{len(messages)} to {target}: {e}",
                    sent_count=sent,
                ) from e
            sent += 1
            logger.debug(f"Sent {sent}/{len(messages)} to {target}")
        return sent

    async def _simulate_typing(self, target: int | str, text: str) -> None:
        """Show the typing indicator for a duration matching the text length."""
        try:
            await self.client(SetTypingRequest(
                peer=target,
                action=SendMessageTypingAction()
            ))
            await asyncio.sleep(self.timing.get_typing_duration(len(text)))
        except Exception as e:
            # Typing indicator is cosmetic
            logger.debug(f"Typing indicator failed for {target}: {e}")

    async def get_me(self) -> dict:
        """Get info about the authenticated user."""
        me = await self.client.get_me()
        return {
            "id": me.id,
            "username": me.username,
            "first_name": me.first_name,
        }
