from urllib.parse import urlencode

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    search: str = "plumber"
    location: str = "San Francisco, CA"
    search_url: str = ""  # overrides search/location when set
    directory_base_url: str = "https://www.yelp.com"
    max_results: int = 200
    fetch_contacts_from_website: bool = True
    contact_page_paths: list[str] = ["/contact", "/contact-us", "/about", "/about-us"]
    max_concurrency: int = 5
    navigation_timeout_secs: float = 45.0
    website_timeout_secs: float = 15.0
    website_max_retries: int = 1
    website_delay_min_ms: int = 300
    website_delay_max_ms: int = 700
    enrich_stop_policy: str = "email"  # "email" | "email_and_phone" | "never"
    renderer: str = "http"  # "http" | "playwright"
    debug_screenshots: bool = False
    screenshot_dir: str = "storage"
    output_path: str = ""  # JSON Lines file; empty keeps records in memory only
    log_level: str = "INFO"


def build_search_url(base_url: str, search: str, location: str) -> str:
    query = urlencode({"find_desc": search or "", "find_loc": location or ""})
    return f"{base_url.rstrip('/')}/search?{query}"


def resolve_start_url(
    settings: Settings,
    search: str | None = None,
    location: str | None = None,
    search_url: str | None = None,
) -> str:
    """Explicit search URL wins; otherwise build one from search term and location."""
    direct = (search_url if search_url is not None else settings.search_url).strip()
    if direct:
        return direct
    return build_search_url(
        settings.directory_base_url,
        search if search is not None else settings.search,
        location if location is not None else settings.location,
    )
