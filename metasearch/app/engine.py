"""Metasearch engine: fans requests out to providers and merges the results."""

import logging
from contextlib import ExitStack
from typing import Any, Self

from more_itertools import flatten, unique_everseen

from ..common.context import Context
from ..common.errors import NoProvidersError, ProviderNotFoundError, TokenError
from ..common.pydantic import Request
from ..search.iterator import PagedIterator
from ..search.merge import MergeIterator
from ..search.registry import ProviderRegistry
from ..search.search_provider import SearchProvider
from ..search.token import MultiToken

logger = logging.getLogger(__name__)


class Engine:
    """Aggregates every provider of a registry behind a single search surface."""

    def __init__(self, registry: ProviderRegistry):
        """Initialize the engine."""
        if len(registry) == 0:
            raise NoProvidersError("no providers were selected")
        self.registry = registry
        self._stack = ExitStack()

    def __enter__(self) -> Self:
        """Start every provider."""
        for provider in self.registry.providers:
            self._stack.enter_context(provider)
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        """Stop every provider."""
        self._stack.close()

    @property
    def provider_id(self) -> str:
        """Identifier of the aggregate."""
        return "meta"

    def search(self, request: Request, ctx: Context | None = None) -> MergeIterator:
        """Start ``request`` on every search provider.

        Providers whose iterator starts in an error state are dropped. The call
        never fails as a whole: without survivors the iterator yields nothing.
        """
        iterators: list[PagedIterator] = []
        provider_ids: list[str] = []
        for provider in self.registry.search_providers:
            it = provider.search(request, ctx)
            if it.err is not None:
                logger.warning("Provider %s failed to start: %s", provider.provider_id, it.err)
                it.close()
                continue
            iterators.append(it)
            provider_ids.append(provider.provider_id)
        logger.debug("Searching %r with providers %s", request.query, provider_ids)
        return MergeIterator(iterators, provider_ids)

    def continue_search(self, token: bytes, ctx: Context | None = None) -> MergeIterator:
        """Resume a merged stream from a token produced by ``MergeIterator.token``.

        Resuming must reproduce the original set of providers: a malformed
        token, an unknown provider or a provider failing to resume aborts the
        whole call. Iterators already opened are closed and the returned
        iterator carries the error.
        """
        iterators: list[PagedIterator] = []
        provider_ids: list[str] = []

        def abort(error: Exception) -> MergeIterator:
            for it in iterators:
                it.close()
            logger.warning("Cannot resume search: %s", error)
            return MergeIterator(error=error)

        try:
            multi = MultiToken.decode(token)
        except TokenError as e:
            return abort(e)

        for entry in multi.provs:
            provider = self.registry.get(entry.id)
            if provider is None:
                return abort(ProviderNotFoundError(entry.id))
            if not isinstance(provider, SearchProvider):
                return abort(ProviderNotFoundError(entry.id, "does not support search"))
            it = provider.continue_search(entry.tok, ctx)
            if it.err is not None:
                it.close()
                return abort(it.err)
            iterators.append(it)
            provider_ids.append(entry.id)
        return MergeIterator(iterators, provider_ids, cursor=MergeIterator.resume_cursor(multi))

    def autocomplete(self, text: str, ctx: Context | None = None) -> tuple[list[str], Exception | None]:
        """Merge suggestions of every autocomplete provider.

        Suggestions are de-duplicated by exact match, first occurrence wins,
        providers are asked in registration order. A failing provider is
        skipped: the last error seen is returned next to whatever the others
        suggested, so a non-None error does not mean the list is empty.
        """
        suggestions: list[list[str]] = []
        last: Exception | None = None
        for provider in self.registry.autocomplete_providers:
            try:
                suggestions.append(provider.autocomplete(text, ctx))
            except Exception as e:
                logger.warning("Autocomplete with %s failed: %s", provider.provider_id, e)
                last = e
        return list(unique_everseen(flatten(suggestions))), last
