"""Answer generation: LLM backends and the retry combinator."""

from relay_bot.generation.backends import (
    AnswerGenerator,
    GeminiGenerator,
    OpenAIAssistantGenerator,
    create_answer_generator,
)
from relay_bot.generation.retry import invoke_with_retry

__all__ = [
    "AnswerGenerator",
    "GeminiGenerator",
    "OpenAIAssistantGenerator",
    "create_answer_generator",
    "invoke_with_retry",
]
