"""Typed exception hierarchy for activity feed errors.

Every failure talking to the brokerage API surfaces as one of these.
None of them is retried: the export aborts on the first one.
"""


class ProviderError(Exception):
    """Base exception for all feed-related errors.

    Carries the provider name so callers can identify which provider failed.
    """

    def __init__(self, message: str, provider_name: str = ""):
        self.provider_name = provider_name
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """Credentials missing, expired, or invalid (HTTP 401/403)."""

    pass


class ProviderConnectionError(ProviderError):
    """Network failures such as timeouts or refused connections."""

    pass


class ProviderAPIError(ProviderError):
    """HTTP 4xx/5xx responses from the provider API."""

    def __init__(
        self,
        message: str,
        provider_name: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider_name)


class ProviderDataError(ProviderError):
    """Malformed or unparseable response from the provider."""

    pass
