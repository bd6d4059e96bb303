import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from directory_crawler.mappers.normalize import site_origin, strip_fragment, unique
from directory_crawler.schemas.work import Label, RenderedPage, WorkItem

logger = logging.getLogger(__name__)

DETAIL_PATH_PREFIX = "/biz/"

# Tried in order; layouts change often so several are kept
_NEXT_PAGE_SELECTORS = (
    'a[rel~="next"]',
    'a[aria-label="Next"]',
    "a.next-link",
)


def _site_root(page: RenderedPage, source_url: str) -> str:
    return (site_origin(page.url) or site_origin(source_url) or source_url) + "/"


def _absolute(root: str, href: str | None) -> str | None:
    if not href:
        return None
    try:
        return urljoin(root, href)
    except ValueError:
        logger.debug("Skipping malformed href %r", href)
        return None


def detail_links(soup: BeautifulSoup, root: str) -> list[str]:
    urls = (_absolute(root, a.get("href")) for a in soup.select(f'a[href^="{DETAIL_PATH_PREFIX}"]'))
    return unique(strip_fragment(url) for url in urls if url)


def next_page_link(soup: BeautifulSoup, root: str) -> str | None:
    for selector in _NEXT_PAGE_SELECTORS:
        link = soup.select_one(selector)
        url = _absolute(root, link.get("href")) if link is not None else None
        if url:
            return url
    return None


def route(page: RenderedPage, source_url: str) -> list[WorkItem]:
    """Turn a search results page into DETAIL items plus at most one SEARCH item for the next page.

    An unrecognised layout yields no items.
    """
    soup = BeautifulSoup(page.markup or "", "html.parser")
    root = _site_root(page, source_url)

    details = detail_links(soup, root)
    next_url = next_page_link(soup, root)
    logger.debug("Routed %s: %d detail link(s), next page %s", source_url, len(details), next_url)

    items = [WorkItem(url=url, label=Label.DETAIL) for url in details]
    if next_url:
        items.append(WorkItem(url=next_url, label=Label.SEARCH))
    return items
