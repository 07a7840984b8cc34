"""Paged result iterator contract."""

from abc import ABC, abstractmethod
from collections.abc import Generator
from typing import Any, Self

from ..common.context import Context
from ..common.pydantic import Result


class PagedIterator(ABC):
    """Cursor over one paginated result stream.

    ``next_page`` returning False is not an error by itself: callers must check
    ``err`` to tell clean exhaustion from a failed fetch.
    """

    @abstractmethod
    def next_page(self, ctx: Context | None = None) -> bool:
        """Fetch the next page. False means there is no further page."""

    @abstractmethod
    def buffered(self) -> int:
        """Number of fetched results not consumed yet."""

    @abstractmethod
    def next(self, ctx: Context | None = None) -> bool:
        """Advance to the next result, fetching a page only if none is buffered."""

    @abstractmethod
    def result(self) -> Result | None:
        """Current result, None before the first successful ``next``."""

    @abstractmethod
    def token(self) -> bytes | None:
        """Opaque continuation token, None when there is nothing to resume."""

    @property
    @abstractmethod
    def err(self) -> Exception | None:
        """Error that stopped the iterator, if any."""

    @abstractmethod
    def close(self) -> None:
        """Release the iterator."""

    def iter_results(self, ctx: Context | None = None) -> Generator[Result, None, None]:
        """Yield results until the iterator stops. Check ``err`` afterwards."""
        while self.next(ctx):
            result = self.result()
            if result is not None:
                yield result

    def __enter__(self) -> Self:
        """Use the iterator as a context manager."""
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        """Close the iterator."""
        self.close()


class EmptyIterator(PagedIterator):
    """Iterator without any result."""

    def next_page(self, ctx: Context | None = None) -> bool:
        return False

    def buffered(self) -> int:
        return 0

    def next(self, ctx: Context | None = None) -> bool:
        return False

    def result(self) -> Result | None:
        return None

    def token(self) -> bytes | None:
        return None

    @property
    def err(self) -> Exception | None:
        return None

    def close(self) -> None:
        pass


class ErrorIterator(EmptyIterator):
    """Iterator that failed before producing anything."""

    def __init__(self, error: Exception) -> None:
        """Store the error reported through ``err``."""
        self._error = error

    @property
    def err(self) -> Exception | None:
        return self._error
