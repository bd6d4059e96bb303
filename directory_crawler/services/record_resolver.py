"""Business record extraction from a rendered directory detail page.

Every field has its own chain of strategies, tried in priority order through
``first_match``. JSON-LD metadata comes first where the field exists there,
visible markup is the fallback. Fields never depend on each other, and a field
whose chain is exhausted is left empty with the reason kept on the report.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import parse_qs, unquote, urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from directory_crawler.mappers.fallback import first_match
from directory_crawler.mappers.normalize import site_origin, unique
from directory_crawler.mappers.structured_data import as_list, find_business_metadata, format_address
from directory_crawler.schemas.business import BusinessRecord, ResolutionReport
from directory_crawler.schemas.work import RenderedPage

logger = logging.getLogger(__name__)

_STAR_RE = re.compile(r"([\d.]+)\s*star", re.IGNORECASE)
_REVIEWS_RE = re.compile(r"(\d[\d,.]*)\s*reviews?", re.IGNORECASE)
_PRICE_RE = re.compile(r"^[$€£]{1,4}$")
_REDIRECT_MARKERS = ("biz_redir", "redirect")
_REDIRECT_PARAMS = ("url", "u")


@dataclass(frozen=True)
class DetailPage:
    soup: BeautifulSoup
    metadata: dict | None
    url: str


def _text(el: Tag | None) -> str | None:
    if el is None:
        return None
    return " ".join(el.get_text(" ", strip=True).split()) or None


def _meta(page: DetailPage, key: str):
    if not page.metadata:
        return None
    return page.metadata.get(key)


# --- name ---


def _metadata_name(page: DetailPage) -> str | None:
    name = _meta(page, "name")
    return str(name).strip() if name else None


def _first_heading(page: DetailPage) -> str | None:
    return _text(page.soup.find("h1"))


# --- phone ---


def _metadata_telephone(page: DetailPage) -> str | None:
    phone = _meta(page, "telephone")
    return str(phone).strip() if phone else None


def _tel_link(page: DetailPage) -> str | None:
    link = page.soup.select_one('a[href^="tel:"]')
    if link is None:
        return None
    return link["href"][len("tel:"):].strip() or None


# --- address ---


def _metadata_address(page: DetailPage) -> str | None:
    return format_address(_meta(page, "address"))


def _address_landmark(page: DetailPage) -> str | None:
    return _text(page.soup.find("address"))


# --- categories ---


def _metadata_categories(page: DetailPage) -> list[str]:
    return unique(as_list(_meta(page, "category")))


def _category_links(page: DetailPage) -> list[str]:
    links = page.soup.select('a[href*="/search?cflt="], span[class*="category"] a')
    return unique(_text(a) for a in links)


# --- rating ---


def _metadata_rating(page: DetailPage) -> float | None:
    aggregate = _meta(page, "aggregateRating")
    if not isinstance(aggregate, dict) or aggregate.get("ratingValue") in (None, ""):
        return None
    return float(aggregate["ratingValue"])


def _star_rating_label(page: DetailPage) -> float | None:
    el = page.soup.select_one('[aria-label$="star rating"], div[role="img"][aria-label*="star"]')
    if el is None:
        return None
    m = _STAR_RE.search(el.get("aria-label", ""))
    return float(m.group(1)) if m else None


# --- review count ---


def _is_review_label(el: Tag) -> bool:
    if el.name == "a" and el.get("href", "").endswith("#reviews"):
        return True
    return "reviews" in el.get_text(" ", strip=True).lower()


def _review_label(page: DetailPage) -> int | None:
    el = page.soup.find(lambda t: t.name in ("p", "a", "span") and _is_review_label(t))
    text = _text(el)
    if not text:
        return None
    m = _REVIEWS_RE.search(text)
    digits = re.sub(r"\D", "", m.group(1) if m else text)
    return int(digits) if digits else None


# --- website ---


def _decode_outbound(href: str, base_url: str) -> str | None:
    """Resolve a link to the business site, unwrapping directory redirect links."""
    absolute = urljoin(base_url, href)
    if any(marker in href for marker in _REDIRECT_MARKERS):
        query = parse_qs(urlsplit(absolute).query)
        for param in _REDIRECT_PARAMS:
            if query.get(param):
                return unquote(query[param][0])
        return None
    if site_origin(absolute) == site_origin(base_url):
        return None  # a link back into the directory itself
    return absolute


def _first_outbound(page: DetailPage, links) -> str | None:
    for link in links:
        href = link.get("href")
        if not href:
            continue
        try:
            url = _decode_outbound(href, page.url)
        except ValueError:
            logger.debug("Skipping malformed website href %r on %s", href, page.url)
            continue
        if site_origin(url):
            return url
    return None


def _links_with_text(page: DetailPage, needle: str, selector: str = "a[href]") -> list[Tag]:
    needle = needle.lower()
    return [a for a in page.soup.select(selector) if needle in a.get_text(" ", strip=True).lower()]


def _website_link(page: DetailPage) -> str | None:
    return _first_outbound(page, _links_with_text(page, "website", 'a[href^="http"]'))


def _business_website_link(page: DetailPage) -> str | None:
    return _first_outbound(page, _links_with_text(page, "business website"))


def _visit_website_link(page: DetailPage) -> str | None:
    return _first_outbound(page, _links_with_text(page, "visit website"))


def _outbound_redirect_link(page: DetailPage) -> str | None:
    return _first_outbound(page, page.soup.select('a[href*="biz_redir?url="]'))


# --- price level ---


def _price_range_class(page: DetailPage) -> str | None:
    return _text(page.soup.select_one("span.price-range"))


def _price_sign_span(page: DetailPage) -> str | None:
    for span in page.soup.find_all("span"):
        text = _text(span)
        if text and _PRICE_RE.match(text):
            return text
    return None


FIELD_STRATEGIES = {
    "name": (_metadata_name, _first_heading),
    "phone": (_metadata_telephone, _tel_link),
    "address": (_metadata_address, _address_landmark),
    "categories": (_metadata_categories, _category_links),
    "rating": (_metadata_rating, _star_rating_label),
    "review_count": (_review_label,),
    "website": (_website_link, _business_website_link, _visit_website_link, _outbound_redirect_link),
    "price_level": (_price_range_class, _price_sign_span),
}

_EMPTY_VALUES = {"categories": []}


def load_detail_page(page: RenderedPage, source_url: str) -> DetailPage:
    soup = BeautifulSoup(page.markup or "", "html.parser")
    return DetailPage(soup=soup, metadata=find_business_metadata(soup), url=page.url or source_url)


def resolve(page: RenderedPage, source_url: str) -> ResolutionReport:
    """Resolve every field independently and report where each came from."""
    detail = load_detail_page(page, source_url)
    values: dict = {}
    sources: dict[str, str] = {}
    misses: dict[str, str] = {}

    for field, strategies in FIELD_STRATEGIES.items():
        attempt = first_match(strategies, detail)
        if attempt.ok:
            values[field] = attempt.value
            sources[field] = attempt.source
        else:
            values[field] = _EMPTY_VALUES.get(field)
            misses[field] = attempt.reason

    values["website"] = site_origin(values["website"])
    record = BusinessRecord(
        scraped_at=datetime.now(timezone.utc),
        source_url=source_url,
        **values,
    )
    if misses:
        logger.debug("Unresolved fields for %s: %s", source_url, ", ".join(sorted(misses)))
    return ResolutionReport(record=record, sources=sources, misses=misses)


def resolve_record(page: RenderedPage, source_url: str) -> BusinessRecord:
    return resolve(page, source_url).record
