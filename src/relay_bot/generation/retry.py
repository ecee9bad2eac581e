"""
Retry Controller - bounded-attempt wrapper around answer generation.

Attempts run back to back with no delay in between. The first attempt that
returns wins; only the last failure is raised to the caller.
"""
import logging
from typing import Awaitable, Callable

from relay_bot.core.models import FALLBACK_ANSWER, MAX_RETRIES

logger = logging.getLogger(__name__)


async def invoke_with_retry(
    generate_fn: Callable[[], Awaitable[str]],
    max_attempts: int = MAX_RETRIES,
    fallback: str = FALLBACK_ANSWER,
) -> str:
    """
    Call ``generate_fn`` until it succeeds or ``max_attempts`` is reached.

    Args:
        generate_fn: Zero-argument coroutine function producing an answer
        max_attempts: Maximum number of calls (>= 1)
        fallback: Returned instead of an empty or whitespace-only answer

    Returns:
        The first successful answer, or ``fallback`` if that answer is blank

    Raises:
        ValueError: If max_attempts < 1
        Exception: Whatever the final attempt raised
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    for attempt in range(1, max_attempts + 1):
        try:
            answer = await generate_fn()
        except Exception as e:
            if attempt == max_attempts:
                logger.error(f"Attempt {attempt}/{max_attempts} failed, giving up: {e}")
                raise
            logger.warning(f"Attempt {attempt}/{max_attempts} failed, retrying: {e}")
            continue

        if answer is None or not answer.strip():
            logger.info("Backend returned an empty answer, using fallback")
            return fallback
        if attempt > 1:
            logger.info(f"Generation succeeded on attempt {attempt}")
        return answer

    # Unreachable: the loop either returns or raises
    raise RuntimeError("retry loop exited without a result")
