import json
import logging
from typing import Any

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

BUSINESS_TYPES = frozenset({
    "LocalBusiness",
    "Organization",
    "ProfessionalService",
    "MedicalBusiness",
})

_ADDRESS_PARTS = ("streetAddress", "addressLocality", "addressRegion", "postalCode")


def _declared_types(block: dict) -> list[str]:
    t = block.get("@type")
    if isinstance(t, str):
        return [t]
    if isinstance(t, list):
        return [x for x in t if isinstance(x, str)]
    return []


def _iter_blocks(parsed: Any):
    """Yield every JSON-LD object in a parsed script, flattening lists and @graph."""
    blocks = parsed if isinstance(parsed, list) else [parsed]
    for block in blocks:
        if not isinstance(block, dict):
            continue
        yield block
        graph = block.get("@graph")
        if isinstance(graph, list):
            yield from (g for g in graph if isinstance(g, dict))


def find_business_metadata(soup: BeautifulSoup) -> dict | None:
    """Return the first JSON-LD block describing a business entity, if any.

    Blocks that fail to parse are skipped.
    """
    for script in soup.select('script[type="application/ld+json"]'):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError):
            logger.debug("Skipping malformed JSON-LD block")
            continue
        for block in _iter_blocks(parsed):
            if BUSINESS_TYPES.intersection(_declared_types(block)):
                return block
    return None


def format_address(address: Any) -> str | None:
    """Flatten a schema.org address (plain string or PostalAddress) into one line."""
    if isinstance(address, str):
        return address.strip() or None
    if isinstance(address, dict):
        parts = [str(address[k]).strip() for k in _ADDRESS_PARTS if address.get(k)]
        return ", ".join(p for p in parts if p) or None
    return None


def as_list(value: Any) -> list[str]:
    """schema.org fields may be a single value or a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v).strip() for v in value if v]
    return [str(value).strip()]
