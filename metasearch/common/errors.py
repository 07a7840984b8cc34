"""Exception hierarchy."""


class MetasearchError(Exception):
    """Base class for all metasearch errors."""


class TokenError(MetasearchError):
    """Continuation token could not be encoded or decoded."""


class ProviderNotFoundError(MetasearchError):
    """A token references a provider the engine cannot resume."""

    def __init__(self, provider_id: str, reason: str = "is not defined") -> None:
        """Store the offending provider ID."""
        super().__init__(f"provider {provider_id!r} {reason}")
        self.provider_id = provider_id


class DuplicateProviderError(MetasearchError, ValueError):
    """Two providers share the same ID."""

    def __init__(self, provider_id: str) -> None:
        """Store the duplicated provider ID."""
        super().__init__(f"provider {provider_id!r} is registered twice")
        self.provider_id = provider_id


class NoProvidersError(MetasearchError):
    """Engine was created without any provider."""


class HTTPStatusError(MetasearchError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str, url: str) -> None:
        """Store the status of the failed response."""
        super().__init__(f"status: {status_code} {reason} ({url})")
        self.status_code = status_code
        self.reason = reason
        self.url = url
