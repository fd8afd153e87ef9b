from typing import Optional


class VitalChatError(Exception):
    """Base class for errors surfaced to the user."""


class ConfigError(VitalChatError):
    """Raised for settings that cannot be used, e.g. an unknown provider."""


class ProviderError(VitalChatError):
    """Raised when a model provider rejects a request or the transport fails."""

    def __init__(self, provider: str, status_code: Optional[int], message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"{provider} API error ({status_code}): {message}")
        else:
            super().__init__(f"{provider} API error: {message}")
