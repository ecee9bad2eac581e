"""
Voice transcription via AssemblyAI.

Voice payloads are staged on disk at ``<temp_dir>/<message_id>.<ext>``,
submitted to AssemblyAI and the staging file is removed in a finally block.

Transcription is never fatal to a conversation: any failure (empty download,
write error, service error, a transcript without speech) is logged and the
fixed apology text is returned instead, so the user still gets an answer to
something.
"""
import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import assemblyai as aai

from relay_bot.core.errors import TranscriptionError
from relay_bot.core.models import TRANSCRIPTION_APOLOGY

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_EXT = "ogg"


class VoiceTranscriber:
    """
    Speech-to-text for voice messages.

    Attributes:
        temp_dir: Directory for transient audio staging files
        apology: Text returned when transcription fails

    Example:
        transcriber = VoiceTranscriber(api_key="...", temp_dir=Path("/tmp/relay_bot"))
        text = await transcriber.transcribe(audio_bytes, message_id=42)
    """

    def __init__(
        self,
        api_key: str,
        temp_dir: Path,
        transcriber: Optional[aai.Transcriber] = None,
        apology: str = TRANSCRIPTION_APOLOGY,
    ):
        if not api_key:
            raise ValueError("AssemblyAI API key is required")
        aai.settings.api_key = api_key
        self._transcriber = transcriber or aai.Transcriber()
        self.temp_dir = Path(temp_dir)
        self.apology = apology

    def staging_path(self, message_id: int | str, ext: str = DEFAULT_AUDIO_EXT) -> Path:
        """Path of the transient audio file for a message."""
        return self.temp_dir / f"{message_id}.{ext.lstrip('.')}"

    async def transcribe(
        self,
        payload: Optional[bytes],
        message_id: int | str,
        ext: str = DEFAULT_AUDIO_EXT,
    ) -> str:
        """
        Transcribe a voice payload.

        Args:
            payload: Raw audio bytes
            message_id: Message ID, used to name the staging file
            ext: Audio file extension (without dot)

        Returns:
            Transcript text, or the apology text on any failure
        """
        path = self.staging_path(message_id, ext)
        try:
            if not payload:
                raise TranscriptionError("empty audio payload")

            await asyncio.to_thread(self._write, path, payload)
            text = await asyncio.to_thread(self._submit, path)
            logger.info(f"Transcribed message {message_id}: {text[:100]}")
            return text
        except Exception as e:
            logger.error(f"Transcription failed for message {message_id}: {e}")
            return self.apology
        finally:
            if path.exists():
                path.unlink(missing_ok=True)

    async def transcribe_message(self, client: Any, message: Any) -> str:
        """
        Download a Telegram voice/audio message and transcribe it.

        Args:
            client: Telethon TelegramClient used for the download
            message: Telethon Message carrying the voice note

        Returns:
            Transcript text, or the apology text on any failure
        """
        try:
            payload = await client.download_media(message, file=bytes)
        except Exception as e:
            logger.error(f"Voice download failed for message {message.id}: {e}")
            return self.apology

        ext = DEFAULT_AUDIO_EXT
        file_info = getattr(message, "file", None)
        if file_info is not None and getattr(file_info, "ext", None):
            ext = file_info.ext.lstrip(".")

        return await self.transcribe(payload, message.id, ext=ext)

    def _write(self, path: Path, payload: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)

    def _submit(self, path: Path) -> str:
        """Blocking AssemblyAI call; run it in a worker thread."""
        transcript = self._transcriber.transcribe(str(path))
        if transcript.status == aai.TranscriptStatus.error:
            raise TranscriptionError(transcript.error or "transcription service error")
        text = (transcript.text or "").strip()
        if not text:
            raise TranscriptionError("no speech in transcript")
        return text
