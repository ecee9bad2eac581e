"""
Pytest Configuration and Fixtures

Shared fixtures for the relay bot tests. No test talks to Telegram,
AssemblyAI, OpenAI or Gemini; all collaborators are mocks.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from relay_bot.core.models import AIBackend, RelayConfig


@pytest.fixture
def relay_config(tmp_path):
    """Config with a short settle delay so debounce tests run fast."""
    return RelayConfig(
        ai_selected=AIBackend.GEMINI,
        gemini_api_key="test-gemini-key",
        assemblyai_api_key="test-assemblyai-key",
        temp_dir=tmp_path / "audio",
        telegram_api_id=12345,
        telegram_api_hash="hash",
        settle_delay_seconds=0.05,
        typing_simulation=False,
    )


@pytest.fixture
def zero_timing():
    """Pacing stub with no waits."""
    timing = MagicMock()
    timing.get_delay.return_value = 0
    timing.get_typing_duration.return_value = 0
    return timing


@pytest.fixture
def mock_generator():
    """Answer generator returning a two-line answer."""
    generator = MagicMock()
    generator.name = "mock"
    generator.generate = AsyncMock(return_value="Hello!\n\nHow can I help?")
    generator.ensure_session = AsyncMock(return_value=None)
    return generator


@pytest.fixture
def mock_service():
    """Delivery relay reporting every chunk as sent."""
    service = MagicMock()
    service.send_messages_with_delay = AsyncMock(side_effect=lambda messages, target: len(messages))
    return service


@pytest.fixture
def mock_transcriber():
    transcriber = MagicMock()
    transcriber.transcribe_message = AsyncMock(return_value="transcribed voice")
    return transcriber
