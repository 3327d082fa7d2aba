"""Errors raised by score provider clients."""


class ProviderError(Exception):
    """Base class for score provider failures."""

    error_type = "provider_error"

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderUnavailableError(ProviderError):
    """Transport failure, timeout or non-2xx response."""

    error_type = "unavailable"


class MalformedResponseError(ProviderError):
    """Response body was not JSON or did not have the expected shape."""

    error_type = "malformed"
