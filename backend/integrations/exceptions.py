"""Typed exception hierarchy for ad provider errors.

Lets the job processor and operators tell an expired token apart from a
rate limit, a network blip or a malformed payload.
"""


class ProviderError(Exception):
    """Base exception for all provider-related errors.

    Carries the provider id so callers can identify which ad platform failed.
    """

    def __init__(self, message: str, provider_id: str = ""):
        self.provider_id = provider_id
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """Access token missing, expired, or revoked (HTTP 401/403)."""

    pass


class ProviderConnectionError(ProviderError):
    """Network failures: timeouts, DNS resolution, connection refused.

    Retriable by default.
    """

    def __init__(self, message: str, provider_id: str = "", retriable: bool = True):
        self.retriable = retriable
        super().__init__(message, provider_id)


class ProviderAPIError(ProviderError):
    """Non-2xx responses other than auth failures."""

    def __init__(
        self,
        message: str,
        provider_id: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider_id)

    @property
    def retriable(self) -> bool:
        """429 (rate limit) and 5xx errors clear up on a later sync."""
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500


class ProviderDataError(ProviderError):
    """Metrics payload could not be parsed into normalized rows."""

    pass
