"""HTTP-backed paged data source bound to a definition's fetch spec.

Each get_rows() call is one GET against the paged-data endpoint:

    GET {url}?filter={json}&limit=N&offset=N&orderBy={json}
    -> {"data": [...], "count": N}

Every call yields exactly one PageResult. Failures (network, non-2xx,
malformed body) come back as ``success=False`` and are never reported as
an empty page. Overlapping calls are independent; discarding stale pages
is the rendering layer's job.
"""

import logging
from typing import Any, Mapping, Optional

import httpx

from gridweaver.definitions.live import PageResult
from gridweaver.translation.schemas import NativePageRequest, NormalizedQuery
from gridweaver.translation.translator import to_query_params, translate

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class HttpPagedDataSource:
    """Paged data source for a table's ``http`` spec."""

    def __init__(
        self,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.url = url
        self.params = dict(params or {})
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    def request_url(self) -> str:
        """Page endpoint URL; a relative url is resolved against base_url when one is set."""
        if not self.base_url or httpx.URL(self.url).is_absolute_url:
            return self.url
        return f"{self.base_url.rstrip('/')}/{self.url.lstrip('/')}"

    async def _get(self, query_params: dict[str, str]) -> httpx.Response:
        url = self.request_url()
        if self._client is not None:
            return await self._client.get(url, params=query_params)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params=query_params)

    async def get_rows(self, query: NormalizedQuery) -> PageResult:
        """Fetch one page for a normalized query."""
        query_params = to_query_params(query, self.params)

        try:
            response = await self._get(query_params)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            error_body = e.response.text[:500] if e.response is not None else "no response body"
            logger.error(
                f"Page fetch failed for {self.url}: {e.response.status_code} - {error_body}"
            )
            return PageResult.failed(f"HTTP {e.response.status_code} from {self.url}")
        except httpx.HTTPError as e:
            logger.error(f"Page fetch HTTP error for {self.url}: {e}")
            return PageResult.failed(f"HTTP error: {e}")
        except ValueError as e:
            logger.error(f"Page fetch returned invalid JSON from {self.url}: {e}")
            return PageResult.failed(f"Invalid JSON response: {e}")

        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            logger.error(f"Page fetch from {self.url} returned no 'data' list")
            return PageResult.failed("Response is missing a 'data' list")

        count = body.get("count")
        if not isinstance(count, int) or isinstance(count, bool):
            logger.error(f"Page fetch from {self.url} returned no integer 'count'")
            return PageResult.failed("Response is missing an integer 'count'")

        logger.debug(
            f"Fetched {len(body['data'])} row(s) of {count} from {self.url} "
            f"(offset={query.offset}, limit={query.limit})"
        )
        return PageResult(success=True, rows=body["data"], row_count=count)

    async def fetch(self, request: NativePageRequest) -> PageResult:
        """Translate a native grid request, then fetch the page."""
        return await self.get_rows(translate(request))

    def __repr__(self) -> str:
        return f"HttpPagedDataSource(url={self.url!r}, params={self.params!r})"
