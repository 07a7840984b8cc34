"""Wikipedia search provider backed by the MediaWiki API."""

from concurrent.futures import CancelledError
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, Field, PrivateAttr, ValidationError

from ..common.context import Context
from ..common.errors import MetasearchError
from ..common.pydantic import EntityResult, FrozenBaseModel, Image, Request, Result
from ..search.iterator import ErrorIterator, PagedIterator
from ..search.search_provider import AutoCompleteProvider, SearchProvider
from .http import HTTPClient

FETCH_ERRORS = (MetasearchError, httpx.HTTPError, CancelledError, ValueError)


class WikiRequest(FrozenBaseModel):
    """Parameters of one search, stored in the provider token."""

    language: str
    query: str
    limit: int
    thumb_size: int


class WikiToken(FrozenBaseModel):
    """Resumable position: page offset and results consumed in that page."""

    req: WikiRequest
    offset: int | None = None
    pos: int = 0


class WikiThumbnail(BaseModel):
    """Page image as returned by the ``pageimages`` property."""

    source: str = ""
    width: int = 0
    height: int = 0


class WikiPage(BaseModel):
    """One page of the ``query.pages`` answer."""

    pageid: int = 0
    title: str
    index: int = 0
    extract: str = ""
    thumbnail: WikiThumbnail | None = None


class WikiQuery(BaseModel):
    """The ``query`` part of the answer."""

    pages: list[WikiPage] = Field(default_factory=list)


class WikiResponse(BaseModel):
    """Answer of ``action=query``."""

    query: WikiQuery = Field(default_factory=WikiQuery)
    continuation: dict[str, Any] | None = Field(default=None, alias="continue")

    @property
    def next_offset(self) -> int | None:
        """Offset of the following page, None on the last page."""
        if not self.continuation or "gsroffset" not in self.continuation:
            return None
        return int(self.continuation["gsroffset"])


def page_url(language: str, title: str) -> str:
    """Article URL for a page title."""
    return f"https://{language}.wikipedia.org/wiki/{quote(title.replace(' ', '_'))}"


def api_url(language: str) -> str:
    """MediaWiki API endpoint of a language edition."""
    return f"https://{language}.wikipedia.org/w/api.php"


class WikipediaProvider(BaseModel, SearchProvider, AutoCompleteProvider):
    """Searches Wikipedia articles and suggests article titles."""

    default_language: str = Field(default="en", description="Language edition used when the request has none.")
    page_size: int = Field(default=10, ge=1, le=20, description="Results per page.")
    thumbnail_size: int = Field(default=300, description="Thumbnail width in pixels.")
    timeout: float = Field(default=10.0, description="HTTP timeout in seconds.")

    _http: HTTPClient | None = PrivateAttr(default=None)

    @property
    def provider_id(self) -> str:
        """Unique identifier for this provider."""
        return "wikipedia"

    @property
    def http(self) -> HTTPClient:
        """HTTP client, created on first use."""
        if self._http is None:
            self._http = HTTPClient(timeout=self.timeout)
        return self._http

    def set_http_client(self, client: HTTPClient) -> None:
        """Replace the HTTP client."""
        self._http = client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._http is not None:
            self._http.close()
            self._http = None

    def _language(self, request: Request) -> str:
        if not request.language:
            return self.default_language
        # Only the primary subtag selects the edition: "de-AT" -> "de".
        return request.language.split("-")[0].split("_")[0].lower()

    def fetch(self, req: WikiRequest, offset: int, ctx: Context | None = None) -> WikiResponse:
        """Fetch one page of results starting at ``offset``."""
        params = {
            "action": "query",
            "format": "json",
            "formatversion": "2",
            "generator": "search",
            "gsrsearch": req.query,
            "gsrlimit": str(req.limit),
            "gsroffset": str(offset),
            "prop": "extracts|pageimages",
            "exintro": "1",
            "explaintext": "1",
            "exlimit": "max",
            "pilimit": "max",
            "pithumbsize": str(req.thumb_size),
            "redirects": "1",
        }
        data = self.http.get_json(api_url(req.language), params=params, ctx=ctx)
        return WikiResponse.model_validate(data)

    def search(self, request: Request, ctx: Context | None = None) -> PagedIterator:
        """Start a search."""
        if not request.query.strip():
            return ErrorIterator(ValueError("empty query"))
        req = WikiRequest(
            language=self._language(request),
            query=request.query,
            limit=self.page_size,
            thumb_size=self.thumbnail_size,
        )
        return WikipediaIterator(self, req)

    def continue_search(self, token: bytes, ctx: Context | None = None) -> PagedIterator:
        """Resume a search, re-fetching the page the token points into."""
        try:
            tok = WikiToken.model_validate_json(token)
        except ValidationError as e:
            return ErrorIterator(e)
        it = WikipediaIterator(self, tok.req)
        if tok.offset is not None:
            it.restore(tok.offset, tok.pos, ctx)
        return it

    def autocomplete(self, text: str, ctx: Context | None = None) -> list[str]:
        """Suggest article titles through ``action=opensearch``."""
        params = {
            "action": "opensearch",
            "format": "json",
            "namespace": "0",
            "limit": str(self.page_size),
            "search": text,
        }
        data = self.http.get_json(api_url(self.default_language), params=params, ctx=ctx)
        if not isinstance(data, list) or len(data) < 2 or not isinstance(data[1], list):
            raise ValueError(f"unexpected opensearch answer: {data!r:.200}")
        return [str(title) for title in data[1]]


class WikipediaIterator(PagedIterator):
    """Pages through ``generator=search`` results."""

    def __init__(self, provider: WikipediaProvider, req: WikiRequest):
        """Create an iterator positioned before the first page."""
        self._provider = provider
        self._req = req
        self._offset: int | None = None
        self._next_offset: int | None = None
        self._page: list[WikiPage] = []
        self._pos = 0
        self._err: Exception | None = None
        self._closed = False

    def _load(self, offset: int, ctx: Context | None) -> bool:
        try:
            resp = self._provider.fetch(self._req, offset, ctx)
        except FETCH_ERRORS as e:
            self._err = e
            return False
        self._offset = offset
        self._next_offset = resp.next_offset
        self._page = sorted(resp.query.pages, key=lambda p: p.index)
        self._pos = 0
        return len(self._page) > 0

    def restore(self, offset: int, pos: int, ctx: Context | None = None) -> None:
        """Reload the page at ``offset`` with ``pos`` results already consumed."""
        if self._load(offset, ctx):
            self._pos = min(pos, len(self._page))

    @property
    def exhausted(self) -> bool:
        """Whether every result was consumed and no page follows."""
        return self._offset is not None and self.buffered() == 0 and self._next_offset is None

    def next_page(self, ctx: Context | None = None) -> bool:
        if self._err is not None or self._closed:
            return False
        if self._offset is None:
            offset = 0
        elif self._next_offset is None:
            return False
        else:
            offset = self._next_offset
        return self._load(offset, ctx)

    def buffered(self) -> int:
        return len(self._page) - self._pos

    def next(self, ctx: Context | None = None) -> bool:
        if self._err is not None or self._closed:
            return False
        if self.buffered() == 0 and not self.next_page(ctx):
            return False
        self._pos += 1
        return True

    def result(self) -> Result | None:
        if not 0 < self._pos <= len(self._page):
            return None
        page = self._page[self._pos - 1]
        thumbnail = None
        if page.thumbnail is not None and page.thumbnail.source:
            thumbnail = Image(url=page.thumbnail.source, width=page.thumbnail.width, height=page.thumbnail.height)
        return EntityResult(
            url=page_url(self._req.language, page.title),
            title=page.title,
            description=page.extract,
            entity_type="article",
            thumbnail=thumbnail,
        )

    def token(self) -> bytes | None:
        if self._err is not None or self.exhausted:
            return None
        return WikiToken(req=self._req, offset=self._offset, pos=self._pos).model_dump_json().encode()

    @property
    def err(self) -> Exception | None:
        return self._err

    def close(self) -> None:
        self._closed = True
        self._page = []
        self._pos = 0
