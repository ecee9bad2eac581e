"""Reply Splitter - turns one generated answer into separate chat messages."""
import re

# A newline plus any whitespace that follows it (blank lines, indentation)
LINE_BREAK = re.compile(r"\n\s*")


def split_reply(answer: str) -> list[str]:
    """
    Split an answer into ordered, non-empty message chunks.

    The answer is trimmed, split on newline boundaries and blank segments are
    dropped. An answer without newlines becomes a single chunk.

    Examples:
        >>> split_reply("a\\n\\nb\\n  \\nc")
        ['a', 'b', 'c']
        >>> split_reply("  single  ")
        ['single']
        >>> split_reply("")
        []
    """
    if not answer:
        return []
    segments = LINE_BREAK.split(answer.strip())
    return [segment for segment in segments if segment.strip()]
