import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import httpx
from bs4 import BeautifulSoup

from directory_crawler.exceptions.custom import RenderError
from directory_crawler.schemas.work import RenderedPage
from directory_crawler.services.fetcher import USER_AGENT

logger = logging.getLogger(__name__)

# Hook run against the live page before its content is captured
PrepareHook = Callable[[Any], Awaitable[Any]]


class PageRenderer(Protocol):
    async def render(self, url: str, prepare: PrepareHook | None = None) -> RenderedPage: ...


def page_text(markup: str) -> str:
    return BeautifulSoup(markup, "html.parser").get_text(separator=" ", strip=True)


class HttpRenderer:
    """Renders pages by plain GET. Suitable for directories that serve markup without scripts.

    There is no live page to prepare, so the prepare hook is ignored.
    """

    def __init__(self, client: httpx.AsyncClient, timeout: float = 45.0):
        self._client = client
        self._timeout = timeout

    async def render(self, url: str, prepare: PrepareHook | None = None) -> RenderedPage:
        try:
            resp = await self._client.get(
                url,
                follow_redirects=True,
                timeout=self._timeout,
                headers={"User-Agent": USER_AGENT},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RenderError(
                f"HTTP {exc.response.status_code}", url=url, status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise RenderError(f"{type(exc).__name__}: {exc}", url=url) from exc

        markup = resp.text
        return RenderedPage(url=str(resp.url), markup=markup, text=page_text(markup))
