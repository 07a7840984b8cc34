"""Explicit provider registry."""

from collections.abc import Iterable

from ..common.errors import DuplicateProviderError
from .search_provider import AutoCompleteProvider, Provider, SearchProvider


class ProviderRegistry:
    """Set of already-constructed providers, keyed by provider ID.

    Registration order is preserved and drives fan-out order.
    """

    def __init__(self, providers: Iterable[Provider] = ()) -> None:
        """Register ``providers`` in order."""
        self._providers: dict[str, Provider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: Provider) -> None:
        """Add a provider. Raises ``DuplicateProviderError`` if its ID is taken."""
        provider_id = provider.provider_id
        if provider_id in self._providers:
            raise DuplicateProviderError(provider_id)
        self._providers[provider_id] = provider

    def get(self, provider_id: str) -> Provider | None:
        """Provider registered under ``provider_id``."""
        return self._providers.get(provider_id)

    @property
    def providers(self) -> list[Provider]:
        """All providers in registration order."""
        return list(self._providers.values())

    @property
    def search_providers(self) -> list[SearchProvider]:
        """Providers able to search."""
        return [p for p in self._providers.values() if isinstance(p, SearchProvider)]

    @property
    def autocomplete_providers(self) -> list[AutoCompleteProvider]:
        """Providers able to autocomplete."""
        return [p for p in self._providers.values() if isinstance(p, AutoCompleteProvider)]

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)
