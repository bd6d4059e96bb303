from collections.abc import Iterable
from urllib.parse import urlsplit, urlunsplit


def unique(values: Iterable | None) -> list:
    """Drop falsy entries and duplicates, keeping first-seen order."""
    seen: set = set()
    result: list = []
    for value in values or ():
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def strip_fragment(url: str) -> str:
    return url.split("#", 1)[0]


def normalize_url(url: str) -> str:
    """Lowercase scheme and host, drop the fragment. Path and query keep their case."""
    parts = urlsplit(url.strip())
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, ""))


def site_origin(url: str | None) -> str | None:
    """Return scheme://host[:port] for an absolute http(s) URL, else None."""
    if not url:
        return None
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        return None
    host = parts.hostname.lower()
    if port:
        host = f"{host}:{port}"
    return f"{parts.scheme.lower()}://{host}"
