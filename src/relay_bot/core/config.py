"""
Configuration loading for the relay bot.

Values come from the process environment, optionally seeded from a ``.env``
file (project root first, then the current working directory). Missing
credentials for the selected backend or for transcription are fatal and
raise ConfigurationError before any client is created.
"""
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from relay_bot.core.errors import ConfigurationError
from relay_bot.core.models import AIBackend, RelayConfig

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent.parent  # src/relay_bot/
PROJECT_ROOT = PACKAGE_DIR.parent.parent  # project root

DEFAULT_TEMP_DIR = Path(tempfile.gettempdir()) / "relay_bot"


def _env(name: str) -> Optional[str]:
    """Read an environment variable, treating blank values as unset."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def load_config(env_file: Optional[Path] = None) -> RelayConfig:
    """
    Build a validated RelayConfig from the environment.

    Args:
        env_file: Optional explicit .env file. When omitted, the project root
                  .env and then the CWD .env are loaded (existing environment
                  variables always win).

    Returns:
        RelayConfig ready to wire the daemon.

    Raises:
        ConfigurationError: Unknown AI_SELECTED value, or missing credentials
                            for the selected backend, transcription or Telegram.
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv(PROJECT_ROOT / ".env")
        load_dotenv()

    raw_backend = (_env("AI_SELECTED") or AIBackend.GEMINI.value).upper()
    try:
        ai_selected = AIBackend(raw_backend)
    except ValueError:
        raise ConfigurationError(
            f"AI_SELECTED must be one of {[b.value for b in AIBackend]}, got {raw_backend!r}"
        ) from None

    gemini_key = _env("GEMINI_KEY")
    openai_key = _env("OPENAI_KEY")
    openai_assistant = _env("OPENAI_ASSISTANT")
    assemblyai_key = _env("ASSEMBLYAI_API_KEY")

    if ai_selected == AIBackend.GEMINI and not gemini_key:
        raise ConfigurationError(
            "GEMINI_KEY is required when AI_SELECTED=GEMINI. "
            "Create one at https://aistudio.google.com/app/apikey"
        )

    if ai_selected == AIBackend.GPT and (not openai_key or not openai_assistant):
        raise ConfigurationError(
            "OPENAI_KEY and OPENAI_ASSISTANT are both required when AI_SELECTED=GPT."
        )

    if not assemblyai_key:
        raise ConfigurationError("ASSEMBLYAI_API_KEY is required for voice transcription.")

    api_id = _env("TELEGRAM_API_ID")
    api_hash = _env("TELEGRAM_API_HASH")
    if not api_id or not api_hash:
        raise ConfigurationError("TELEGRAM_API_ID and TELEGRAM_API_HASH are required.")
    try:
        telegram_api_id = int(api_id)
    except ValueError:
        raise ConfigurationError(f"TELEGRAM_API_ID must be numeric, got {api_id!r}") from None

    temp_dir = Path(_env("RELAY_TEMP_DIR") or DEFAULT_TEMP_DIR)

    config = RelayConfig(
        ai_selected=ai_selected,
        gemini_api_key=gemini_key,
        gemini_model=_env("GEMINI_MODEL") or "gemini-2.0-flash",
        gemini_prompt=_env("GEMINI_PROMPT"),
        openai_api_key=openai_key,
        openai_assistant_id=openai_assistant,
        assemblyai_api_key=assemblyai_key,
        temp_dir=temp_dir,
        telegram_api_id=telegram_api_id,
        telegram_api_hash=api_hash,
        telegram_session=_env("TELEGRAM_SESSION") or "relay_bot",
        timing_mode=_env("RELAY_TIMING_MODE") or "natural",
    )
    logger.debug(f"Configuration loaded: backend={config.ai_selected.value}, temp_dir={config.temp_dir}")
    return config
