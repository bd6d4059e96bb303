import logging
from typing import Protocol

import httpx

from directory_crawler.exceptions.custom import FetchError
from directory_crawler.schemas.contacts import FetchResult

logger = logging.getLogger(__name__)

_MAX_BODY = 2 * 1024 * 1024  # 2 MB
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)
_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}
_TEXT_TYPES = ("text/", "html", "xml", "json")


class PageFetcher(Protocol):
    async def fetch(self, url: str, timeout: float, retries: int) -> FetchResult: ...


class HttpFetcher:
    """Plain HTTP retrieval for contact pages. Raises FetchError on failure."""

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    async def fetch(self, url: str, timeout: float = 15.0, retries: int = 1) -> FetchResult:
        last_error = "no attempt made"
        for attempt in range(retries + 1):
            try:
                resp = await self._client.get(
                    url,
                    follow_redirects=True,
                    timeout=timeout,
                    headers=_HEADERS,
                )
            except httpx.HTTPError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                logger.debug("Fetch attempt %d for %s failed: %s", attempt + 1, url, last_error)
                continue

            if resp.status_code >= 500:
                last_error = f"HTTP {resp.status_code}"
                logger.debug("Fetch attempt %d for %s got %d", attempt + 1, url, resp.status_code)
                continue
            if resp.status_code >= 400:
                raise FetchError(f"HTTP {resp.status_code}", url=url, status_code=resp.status_code)

            content_type = resp.headers.get("content-type", "")
            if content_type and not any(t in content_type for t in _TEXT_TYPES):
                raise FetchError(f"non-text content ({content_type})", url=url, status_code=resp.status_code)
            if len(resp.content) > _MAX_BODY:
                raise FetchError(f"body too large ({len(resp.content)} bytes)", url=url, status_code=resp.status_code)

            return FetchResult(url=str(resp.url), status=resp.status_code, body=resp.text)

        raise FetchError(last_error, url=url)
