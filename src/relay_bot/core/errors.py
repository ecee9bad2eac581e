"""Error taxonomy for the relay bot."""


class RelayBotError(Exception):
    """Base class for all relay bot errors."""


class ConfigurationError(RelayBotError):
    """Required configuration is missing or invalid. Fatal at startup."""


class TranscriptionError(RelayBotError):
    """Voice transcription failed. Recovered inside the transcriber."""


class GenerationError(RelayBotError):
    """An answer backend failed to produce a reply."""

    def __init__(self, message: str, backend: str = "unknown"):
        super().__init__(message)
        self.backend = backend


class DeliveryError(RelayBotError):
    """Sending a reply chunk to the conversation failed."""

    def __init__(self, message: str, sent_count: int = 0):
        super().__init__(message)
        self.sent_count = sent_count
