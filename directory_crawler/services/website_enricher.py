import asyncio
import logging
import random
from collections.abc import Callable, Sequence
from urllib.parse import urljoin

from pydantic import BaseModel

from directory_crawler.config import Settings
from directory_crawler.exceptions.custom import CrawlConfigError, FetchError
from directory_crawler.mappers.contact_extractor import extract_contacts
from directory_crawler.mappers.normalize import site_origin, strip_fragment
from directory_crawler.schemas.contacts import ContactBundle, EnrichmentReport, FetchAttempt
from directory_crawler.schemas.crawl import DEFAULT_CONTACT_PATHS
from directory_crawler.services.fetcher import PageFetcher

logger = logging.getLogger(__name__)

StopPolicy = Callable[[ContactBundle], bool]


def stop_on_email(found: ContactBundle) -> bool:
    return bool(found.emails)


def stop_on_email_and_phone(found: ContactBundle) -> bool:
    return bool(found.emails) and bool(found.phones)


def never_stop(found: ContactBundle) -> bool:
    return False


STOP_POLICIES: dict[str, StopPolicy] = {
    "email": stop_on_email,
    "email_and_phone": stop_on_email_and_phone,
    "never": never_stop,
}


def get_stop_policy(name: str) -> StopPolicy:
    try:
        return STOP_POLICIES[name]
    except KeyError:
        raise CrawlConfigError(
            f"Unknown stop policy {name!r}; expected one of {sorted(STOP_POLICIES)}"
        ) from None


class EnrichOptions(BaseModel):
    timeout_secs: float = 15.0
    max_retries: int = 1
    delay_min_ms: int = 300
    delay_max_ms: int = 700

    @classmethod
    def from_settings(cls, settings: Settings) -> "EnrichOptions":
        return cls(
            timeout_secs=settings.website_timeout_secs,
            max_retries=settings.website_max_retries,
            delay_min_ms=settings.website_delay_min_ms,
            delay_max_ms=settings.website_delay_max_ms,
        )


def build_candidate_urls(origin: str, contact_paths: Sequence[str]) -> list[str]:
    """Origin first, then each path resolved against it; fragments stripped, duplicates dropped."""
    base = origin.rstrip("/")
    raw = [base] + [urljoin(base + "/", path) for path in contact_paths if path]
    candidates: list[str] = []
    tried: set[str] = set()
    for url in raw:
        clean = strip_fragment(url).rstrip("/")
        if clean in tried:
            continue
        tried.add(clean)
        candidates.append(clean)
    return candidates


class WebsiteEnricherService:
    def __init__(
        self,
        fetcher: PageFetcher,
        stop_policy: StopPolicy = stop_on_email,
        options: EnrichOptions | None = None,
    ):
        self._fetcher = fetcher
        self._stop_policy = stop_policy
        self._options = options or EnrichOptions()

    async def enrich(
        self,
        origin_url: str | None,
        contact_paths: Sequence[str] = DEFAULT_CONTACT_PATHS,
    ) -> ContactBundle:
        """Harvest contacts from a business website. Best-effort, never raises."""
        report = await self.harvest(origin_url, contact_paths)
        return report.contacts

    async def harvest(
        self,
        origin_url: str | None,
        contact_paths: Sequence[str] = DEFAULT_CONTACT_PATHS,
    ) -> EnrichmentReport:
        origin = site_origin(origin_url)
        if not origin:
            return EnrichmentReport(origin=origin_url)

        candidates = build_candidate_urls(origin, contact_paths)
        found = ContactBundle()
        attempts: list[FetchAttempt] = []

        for index, url in enumerate(candidates):
            attempt, contacts = await self._visit(url)
            attempts.append(attempt)
            if contacts is not None:
                found = found.merge(contacts)

            if self._stop_policy(found):
                remaining = len(candidates) - index - 1
                logger.debug("Contacts satisfied for %s, skipping %d candidate(s)", origin, remaining)
                return EnrichmentReport(
                    origin=origin, contacts=found, attempts=attempts, stopped_early=remaining > 0,
                )

            if index < len(candidates) - 1:
                await self._polite_delay()

        return EnrichmentReport(origin=origin, contacts=found, attempts=attempts)

    async def _visit(self, url: str) -> tuple[FetchAttempt, ContactBundle | None]:
        try:
            result = await self._fetcher.fetch(
                url, timeout=self._options.timeout_secs, retries=self._options.max_retries,
            )
        except FetchError as exc:
            logger.debug("Error fetching website %s: %s", url, exc.message)
            return FetchAttempt(url=url, ok=False, status=exc.status_code, reason=exc.message), None
        except Exception as exc:
            logger.debug("Unexpected error fetching website %s", url, exc_info=True)
            return FetchAttempt(url=url, ok=False, reason=f"{type(exc).__name__}: {exc}"), None

        return FetchAttempt(url=url, ok=True, status=result.status), extract_contacts(result.body)

    async def _polite_delay(self) -> None:
        low = self._options.delay_min_ms
        high = max(low, self._options.delay_max_ms)
        await asyncio.sleep(random.uniform(low, high) / 1000)
