"""
Relay Bot - A Telegram bridge that answers private chats with a language model.

This package listens for one-to-one Telegram messages, transcribes voice notes,
debounces bursts of messages per conversation, asks an LLM backend (Gemini or
an OpenAI assistant) for an answer and relays the reply back in paced chunks.
"""

__version__ = "1.0.0"
