import logging
from collections.abc import Sequence

from directory_crawler.exceptions.custom import RenderError
from directory_crawler.schemas.business import BusinessRecord
from directory_crawler.schemas.crawl import DEFAULT_CONTACT_PATHS, CrawlFailure, CrawlState, StepOutcome
from directory_crawler.schemas.work import Label, RenderedPage, WorkItem
from directory_crawler.services import record_resolver, search_router
from directory_crawler.services.renderer import PageRenderer
from directory_crawler.services.website_enricher import WebsiteEnricherService

logger = logging.getLogger(__name__)

CONSENT_BUTTON_SELECTOR = 'button:has-text("Accept"), button:has-text("AGREE"), button:has-text("I Accept")'
CONSENT_CLICK_TIMEOUT_MS = 2000


async def dismiss_consent_overlay(page) -> bool:
    """Click away a cookie/consent banner if one is showing. Never raises."""
    try:
        buttons = page.locator(CONSENT_BUTTON_SELECTOR)
        if not await buttons.count():
            return False
        await buttons.first.click(timeout=CONSENT_CLICK_TIMEOUT_MS)
        return True
    except Exception:
        logger.debug("Consent overlay dismissal skipped", exc_info=True)
        return False


class CrawlOrchestrator:
    def __init__(
        self,
        renderer: PageRenderer,
        enricher: WebsiteEnricherService | None = None,
        contact_paths: Sequence[str] = DEFAULT_CONTACT_PATHS,
        fetch_contacts_from_website: bool = True,
    ):
        self._renderer = renderer
        self._enricher = enricher
        self._contact_paths = list(contact_paths)
        self._fetch_contacts = fetch_contacts_from_website

    async def step(self, state: CrawlState, item: WorkItem) -> tuple[CrawlState, StepOutcome]:
        outcome = await self.process(item)
        return state.apply(outcome), outcome

    async def process(self, item: WorkItem) -> StepOutcome:
        """Render one work item and dispatch it by label. Failures come back on the outcome."""
        if item.label not in (Label.SEARCH, Label.DETAIL):
            logger.warning("Dropping work item with unknown label %r: %s", item.label, item.url)
            return StepOutcome(item=item, dropped=True)

        try:
            page = await self._renderer.render(item.url, prepare=dismiss_consent_overlay)
        except RenderError as exc:
            return self._failed(item, exc.message)
        except Exception as exc:
            logger.exception("Unexpected error rendering %s", item.url)
            return self._failed(item, f"{type(exc).__name__}: {exc}")

        try:
            return await self.handle(item, page)
        except Exception as exc:
            logger.exception("Unexpected error processing %s %s", item.label, item.url)
            return self._failed(item, f"{type(exc).__name__}: {exc}")

    async def handle(self, item: WorkItem, page: RenderedPage) -> StepOutcome:
        """Dispatch a rendered page; callers have already dropped unknown labels."""
        if item.label == Label.SEARCH:
            items = search_router.route(page, item.url)
            logger.info("SEARCH page: enqueued %d items from %s", len(items), item.url)
            return StepOutcome(item=item, enqueue=items)
        record = await self._build_record(page, item.url)
        logger.info("Saved: %s | %s", record.name or "(no-name)", item.url)
        return StepOutcome(item=item, record=record)

    async def _build_record(self, page: RenderedPage, source_url: str) -> BusinessRecord:
        record = record_resolver.resolve_record(page, source_url)
        if not (record.website and self._fetch_contacts and self._enricher):
            return record

        contacts = await self._enricher.enrich(record.website, self._contact_paths)
        return record.model_copy(update={
            "emails": contacts.emails,
            "phones_from_website": contacts.phones,
            "social_links": contacts.social_links,
        })

    def _failed(self, item: WorkItem, error: str) -> StepOutcome:
        logger.debug("Request failed: %s - %s", item.url, error)
        return StepOutcome(
            item=item,
            failure=CrawlFailure(url=item.url, label=item.label, error=error),
        )
