"""HTTP client shared by providers."""

import logging
import os
from typing import Any

import httpx

from ..common.context import Context
from ..common.errors import HTTPStatusError

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 10.0
USER_AGENT = "metasearch/0.1 (+https://github.com/metasearch)"


def debug_http() -> bool:
    """Whether verbose transport logging is enabled."""
    return os.getenv("METASEARCH_DEBUG_HTTP", "").lower() == "true"


class HTTPClient:
    """Thin wrapper over ``httpx.Client`` honouring a ``Context``."""

    def __init__(
        self,
        base_url: str = "",
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create the client. ``transport`` replaces the network layer, e.g. in tests."""
        self.base_url = base_url
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

    def _timeout(self, ctx: Context | None) -> float:
        if ctx is None:
            return self.timeout
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout
        return min(self.timeout, remaining)

    def get(self, path: str, params: dict[str, Any] | None = None, ctx: Context | None = None) -> httpx.Response:
        """GET ``base_url + path``. Raises ``HTTPStatusError`` on a non-2xx status."""
        if ctx is not None:
            ctx.check()
        url = self.base_url + path
        if debug_http():
            logger.info("GET %s %s", url, params or {})
        response = self._client.get(url, params=params, timeout=self._timeout(ctx))
        if not response.is_success:
            raise HTTPStatusError(response.status_code, response.reason_phrase, str(response.url))
        if debug_http():
            logger.info("%s %s: %s", response.status_code, response.url, response.text[:2000])
        return response

    def get_json(self, path: str, params: dict[str, Any] | None = None, ctx: Context | None = None) -> Any:
        """GET and decode a JSON body."""
        return self.get(path, params=params, ctx=ctx).json()

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()
