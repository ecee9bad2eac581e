"""
Answer generation backends.

Two interchangeable backends sit behind AnswerGenerator:

- **OpenAIAssistantGenerator** (``AI_SELECTED=GPT``): stateful. Each
  conversation gets its own Assistants API thread, created on first use and
  reused for every later message, so the assistant keeps the context.
- **GeminiGenerator** (``AI_SELECTED=GEMINI``): stateless. Each call is a
  single ``generate_content`` request with the settled text.

The backend is picked once at startup by create_answer_generator(). Backends
never retry; any SDK or network failure surfaces as GenerationError and the
Retry Controller decides what to do with it.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from relay_bot.core.errors import ConfigurationError, GenerationError
from relay_bot.core.models import AIBackend, RelayConfig

logger = logging.getLogger(__name__)


class AnswerGenerator(ABC):
    """Produces a reply for the settled text of a conversation."""

    name: str = "generator"

    @abstractmethod
    async def generate(self, text: str, conversation_id: str) -> str:
        """
        Generate a reply.

        Args:
            text: Settled text of the burst
            conversation_id: Conversation the text came from

        Returns:
            Reply text (may be empty; the caller handles blank answers)

        Raises:
            GenerationError: On any backend or network failure
        """

    async def ensure_session(self, conversation_id: str) -> None:
        """Prepare per-conversation state before a message is buffered. No-op by default."""
        return None


class OpenAIAssistantGenerator(AnswerGenerator):
    """Stateful backend: one OpenAI Assistants thread per conversation."""

    name = "openai-assistant"

    def __init__(
        self,
        api_key: str,
        assistant_id: str,
        poll_interval: float = 1.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.assistant_id = assistant_id
        self.poll_interval = poll_interval
        self.client = client or AsyncOpenAI(api_key=api_key)

        # Session management: conversation_id -> thread_id
        self.sessions: dict[str, str] = {}
        self._session_locks: dict[str, asyncio.Lock] = {}

    async def ensure_session(self, conversation_id: str) -> None:
        """Create the conversation's thread unless it already exists."""
        await self._get_thread_id(conversation_id)

    async def _get_thread_id(self, conversation_id: str) -> str:
        thread_id = self.sessions.get(conversation_id)
        if thread_id:
            return thread_id

        lock = self._session_locks.setdefault(conversation_id, asyncio.Lock())
        async with lock:
            thread_id = self.sessions.get(conversation_id)
            if thread_id:
                return thread_id
            try:
                thread = await self.client.beta.threads.create()
            except Exception as e:
                raise GenerationError(f"Could not create thread: {e}", backend=self.name) from e
            self.sessions[conversation_id] = thread.id
            logger.info(f"Created assistant thread {thread.id} for {conversation_id}")
            return thread.id

    async def generate(self, text: str, conversation_id: str) -> str:
        thread_id = await self._get_thread_id(conversation_id)

        try:
            await self.client.beta.threads.messages.create(
                thread_id=thread_id,
                role="user",
                content=text,
            )
            run = await self.client.beta.threads.runs.create_and_poll(
                thread_id=thread_id,
                assistant_id=self.assistant_id,
                poll_interval_ms=int(self.poll_interval * 1000),
            )
        except Exception as e:
            raise GenerationError(f"OpenAI request failed: {e}", backend=self.name) from e

        if run.status != "completed":
            detail = getattr(run, "last_error", None)
            raise GenerationError(
                f"Assistant run {run.id} ended with status {run.status}: {detail}",
                backend=self.name,
            )

        try:
            page = await self.client.beta.threads.messages.list(
                thread_id=thread_id,
                run_id=run.id,
                order="desc",
                limit=1,
            )
        except Exception as e:
            raise GenerationError(f"Could not fetch assistant reply: {e}", backend=self.name) from e

        if not page.data:
            return ""

        parts = [
            block.text.value
            for block in page.data[0].content
            if getattr(block, "type", None) == "text"
        ]
        return "\n".join(parts)


class GeminiGenerator(AnswerGenerator):
    """Stateless backend: one Gemini generate_content call per settled burst."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        system_prompt: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        self.model = model
        self.system_prompt = system_prompt
        self.client = client or genai.Client(api_key=api_key)

    async def generate(self, text: str, conversation_id: str) -> str:
        config = None
        if self.system_prompt:
            config = types.GenerateContentConfig(system_instruction=self.system_prompt)

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=text,
                config=config,
            )
        except Exception as e:
            raise GenerationError(f"Gemini request failed: {e}", backend=self.name) from e

        if not response.candidates:
            raise GenerationError(
                f"Gemini returned no candidates for {conversation_id}",
                backend=self.name,
            )
        return response.text or ""


def create_answer_generator(config: RelayConfig) -> AnswerGenerator:
    """
    Build the backend selected by ``config.ai_selected``.

    Raises:
        ConfigurationError: If the selected backend's credentials are missing
    """
    if config.ai_selected == AIBackend.GPT:
        if not config.openai_api_key or not config.openai_assistant_id:
            raise ConfigurationError("OpenAI backend needs OPENAI_KEY and OPENAI_ASSISTANT")
        return OpenAIAssistantGenerator(
            api_key=config.openai_api_key,
            assistant_id=config.openai_assistant_id,
            poll_interval=config.openai_poll_interval,
        )

    if not config.gemini_api_key:
        raise ConfigurationError("Gemini backend needs GEMINI_KEY")
    return GeminiGenerator(
        api_key=config.gemini_api_key,
        model=config.gemini_model,
        system_prompt=config.gemini_prompt,
    )
