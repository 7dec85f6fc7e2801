class AiClientError(Exception):
    """Raised when the AI provider returns an unusable response."""


class AiNetworkError(AiClientError):
    """Raised when the AI provider call fails due to network/infrastructure issues."""
