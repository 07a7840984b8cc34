"""Basic provider interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Self

from ..common.context import Context
from ..common.pydantic import Language, Region, Request
from .iterator import PagedIterator


class Provider(ABC):
    """Search backend identified by a stable ID."""

    @property
    def provider_id(self) -> str:
        """Unique identifier for this provider."""
        return type(self).__name__.lower()

    def close(self) -> None:
        """Release provider resources."""

    def __enter__(self) -> Self:
        """Start the provider."""
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        """Stop the provider."""
        self.close()


class SearchProvider(Provider):
    """Provider able to start and resume paginated searches.

    A provider that cannot start a search returns an iterator already in an
    error state instead of raising.
    """

    def languages(self, ctx: Context | None = None) -> list[Language]:
        """Languages supported by the provider."""
        return []

    def regions(self, ctx: Context | None = None) -> list[Region]:
        """Regions supported by the provider."""
        return []

    @abstractmethod
    def search(self, request: Request, ctx: Context | None = None) -> PagedIterator:
        """Start a search."""

    @abstractmethod
    def continue_search(self, token: bytes, ctx: Context | None = None) -> PagedIterator:
        """Resume a search from a token produced by one of this provider's iterators."""


class AutoCompleteProvider(Provider):
    """Provider able to suggest query completions."""

    @abstractmethod
    def autocomplete(self, text: str, ctx: Context | None = None) -> list[str]:
        """Suggest completions for ``text``. Raises on failure."""
