"""
Tests for the delivery relay.
"""

from unittest.mock import AsyncMock

import pytest

from relay_bot.core.errors import DeliveryError
from relay_bot.core.service import TelegramService


class TestSendMessagesWithDelay:

    @pytest.mark.asyncio
    async def test_sends_in_order(self, zero_timing):
        client = AsyncMock()
        service = TelegramService(client, timing=zero_timing, typing_simulation=False)

        sent = await service.send_messages_with_delay(["one", "two", "three"], 555)

        assert sent == 3
        assert [c.args for c in client.send_message.await_args_list] == [
            (555, "one"), (555, "two"), (555, "three"),
        ]
        assert zero_timing.get_delay.call_count == 3

    @pytest.mark.asyncio
    async def test_typing_indicator_before_each_chunk(self, zero_timing):
        client = AsyncMock()
        service = TelegramService(client, timing=zero_timing, typing_simulation=True)

        await service.send_messages_with_delay(["one", "two"], 555)

        # client(SetTypingRequest(...)) once per chunk
        assert client.await_count == 2
        assert zero_timing.get_typing_duration.call_count == 2

    @pytest.mark.asyncio
    async def test_typing_failure_is_ignored(self, zero_timing):
        client = AsyncMock()
        client.side_effect = RuntimeError("typing not allowed")
        service = TelegramService(client, timing=zero_timing, typing_simulation=True)

        assert await service.send_messages_with_delay(["one"], 555) == 1

    @pytest.mark.asyncio
    async def test_send_failure_raises_delivery_error(self, zero_timing):
        client = AsyncMock()
        client.send_message.side_effect = [None, RuntimeError("peer flood"), None]
        service = TelegramService(client, timing=zero_timing, typing_simulation=False)

        with pytest.raises(DeliveryError) as exc_info:
            await service.send_messages_with_delay(["one", "two", "three"], 555)

        assert exc_info.value.sent_count == 1
        assert client.send_message.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_batch(self, zero_timing):
        client = AsyncMock()
        service = TelegramService(client, timing=zero_timing)

        assert await service.send_messages_with_delay([], 555) == 0
        client.send_message.assert_not_awaited()
