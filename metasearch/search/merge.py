"""Round-robin merge of several paged iterators."""

import logging

from ..common.context import Context
from ..common.pydantic import Result
from .iterator import PagedIterator
from .token import MultiToken, ProviderToken

logger = logging.getLogger(__name__)

BEFORE_START = -1


class MergeIterator(PagedIterator):
    """Interleaves the streams of several providers into one paged stream.

    Providers are served in rotating order within a page, skipping the ones
    with nothing buffered. A provider that fails or runs dry is closed and
    dropped, its error only logged. All providers advance to their next page
    together, once nothing is buffered anywhere.

    The iterator owns every provider iterator it holds and is not safe for
    concurrent use.
    """

    def __init__(
        self,
        iterators: list[PagedIterator] | None = None,
        provider_ids: list[str] | None = None,
        cursor: int = BEFORE_START,
        error: Exception | None = None,
    ) -> None:
        """Take ownership of ``iterators``, labelled by the parallel ``provider_ids``."""
        self._iters = list(iterators or [])
        self._ids = list(provider_ids or [])
        if len(self._iters) != len(self._ids):
            raise ValueError("iterators and provider_ids must have the same length")
        self._cur = cursor
        self._err = error

    @property
    def provider_ids(self) -> list[str]:
        """IDs of the providers still live, in round-robin order."""
        return list(self._ids)

    @property
    def err(self) -> Exception | None:
        return self._err

    def _remove(self, i: int) -> None:
        it = self._iters.pop(i)
        provider_id = self._ids.pop(i)
        if it.err is not None:
            logger.warning("Dropping provider %s: %s", provider_id, it.err)
        else:
            logger.debug("Provider %s exhausted", provider_id)
        it.close()

    def next_page(self, ctx: Context | None = None) -> bool:
        self._cur = BEFORE_START
        i = 0
        while i < len(self._iters):
            if self._iters[i].next_page(ctx):
                i += 1
            else:
                self._remove(i)
        return len(self._iters) > 0

    def buffered(self) -> int:
        return sum(it.buffered() for it in self._iters)

    def next(self, ctx: Context | None = None) -> bool:
        if self._err is not None:
            return False
        while self._iters:
            if self.buffered() == 0 and not self.next_page(ctx):
                return False
            self._cur = (self._cur + 1) % len(self._iters)
            cur = self._iters[self._cur]
            if cur.buffered() == 0:
                continue
            if cur.next(ctx):
                return True
            self._remove(self._cur)
            self._cur -= 1
        return False

    def result(self) -> Result | None:
        if 0 <= self._cur < len(self._iters):
            return self._iters[self._cur].result()
        return None

    def close(self) -> None:
        while self._iters:
            self._ids.pop()
            self._iters.pop().close()
        self._cur = BEFORE_START

    def token(self) -> bytes | None:
        """Continuation token of the merged stream.

        Reading the token may set ``err``: a provider that returns no sub-token
        while reporting an error hands that error to the merge iterator, and so
        does a failed encoding. An error set this way ends the stream. Check
        ``err`` after calling, or use ``checkpoint``.
        """
        if not self._iters:
            return None
        entries: list[ProviderToken] = []
        cur = 0
        for i, (it, provider_id) in enumerate(zip(self._iters, self._ids, strict=True)):
            tok = it.token()
            if tok is None:
                if it.err is not None:
                    self._err = it.err
                if i == self._cur:
                    cur = len(entries)
                continue
            entries.append(ProviderToken(id=provider_id, tok=tok))
            if i == self._cur:
                cur = len(entries)
        if not entries:
            return None
        try:
            return MultiToken(provs=entries, cur=cur).encode()
        except ValueError as e:
            self._err = e
            return None

    def checkpoint(self) -> tuple[bytes | None, Exception | None]:
        """Token together with the error state it leaves behind."""
        tok = self.token()
        return tok, self._err

    @staticmethod
    def resume_cursor(token: MultiToken) -> int:
        """Cursor position that makes ``token.cur`` the next entry served."""
        return token.cur - 1
