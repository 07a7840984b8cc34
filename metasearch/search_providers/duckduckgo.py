"""DuckDuckGo autocomplete provider."""

from pydantic import BaseModel, Field, PrivateAttr, TypeAdapter

from ..common.context import Context
from ..search.search_provider import AutoCompleteProvider
from .http import HTTPClient

BASE_URL_AUTO = "https://ac.duckduckgo.com"


class Phrase(BaseModel):
    """Suggestion entry of the ``/ac`` endpoint."""

    phrase: str


_phrases = TypeAdapter(list[Phrase])


class DuckDuckGoProvider(BaseModel, AutoCompleteProvider):
    """Query suggestions from DuckDuckGo."""

    timeout: float = Field(default=10.0, description="HTTP timeout in seconds.")

    _http: HTTPClient | None = PrivateAttr(default=None)

    @property
    def provider_id(self) -> str:
        """Unique identifier for this provider."""
        return "duckduckgo"

    @property
    def http(self) -> HTTPClient:
        """HTTP client, created on first use."""
        if self._http is None:
            self._http = HTTPClient(BASE_URL_AUTO, timeout=self.timeout)
        return self._http

    def set_http_client(self, client: HTTPClient) -> None:
        """Replace the HTTP client."""
        self._http = client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._http is not None:
            self._http.close()
            self._http = None

    def autocomplete(self, text: str, ctx: Context | None = None) -> list[str]:
        """Suggest completions for ``text``."""
        data = self.http.get_json("/ac", params={"q": text, "type": "json"}, ctx=ctx)
        return [p.phrase for p in _phrases.validate_python(data)]
