SEARCH_RATE_LIMIT_EXCEEDED = "SEARCH_RATE_LIMIT_EXCEEDED"
AI_RATE_LIMIT_EXCEEDED = "AI_RATE_LIMIT_EXCEEDED"


class SolaceError(Exception):
    """Base class for errors raised by the search core."""


class ConfigurationError(SolaceError):
    """Required configuration (e.g. the LLM API key) is missing."""


class AIRateLimitError(SolaceError):
    def __init__(self) -> None:
        super().__init__(AI_RATE_LIMIT_EXCEEDED)


class GenerationError(SolaceError):
    """The generation service failed or returned nothing usable."""
