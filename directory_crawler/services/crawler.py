import asyncio
import logging
from datetime import datetime, timezone

import httpx

from directory_crawler.config import Settings
from directory_crawler.schemas.business import BusinessRecord
from directory_crawler.schemas.crawl import CrawlOptions, CrawlState, CrawlSummary, StepOutcome
from directory_crawler.schemas.work import Label, WorkItem
from directory_crawler.services.fetcher import HttpFetcher
from directory_crawler.services.orchestrator import CrawlOrchestrator
from directory_crawler.services.renderer import PageRenderer
from directory_crawler.services.sink import (
    FailureReporter,
    JsonLinesSink,
    LoggingFailureReporter,
    MemorySink,
    RecordSink,
)
from directory_crawler.services.website_enricher import EnrichOptions, WebsiteEnricherService, get_stop_policy
from directory_crawler.services.work_queue import WorkQueue

logger = logging.getLogger(__name__)


class CrawlerService:
    """Runs a bounded pool of workers over the work queue until it drains."""

    def __init__(
        self,
        orchestrator: CrawlOrchestrator,
        options: CrawlOptions,
        sink: RecordSink | None = None,
        reporter: FailureReporter | None = None,
    ):
        self._orchestrator = orchestrator
        self._options = options
        self._sink = sink if sink is not None else MemorySink()
        self._reporter = reporter if reporter is not None else LoggingFailureReporter()
        self._state = CrawlState()
        self._records: list[BusinessRecord] = []

    @property
    def state(self) -> CrawlState:
        return self._state

    async def run(self) -> CrawlSummary:
        started_at = datetime.now(timezone.utc)
        queue = WorkQueue(max_items=self._options.max_requests)
        queue.enqueue([WorkItem(url=self._options.start_url, label=Label.SEARCH)])
        logger.info("Start URL: %s", self._options.start_url)

        workers = [
            asyncio.create_task(self._worker(queue))
            for _ in range(max(1, self._options.max_concurrency))
        ]
        try:
            await queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        logger.info(
            "Crawl finished: %d processed, %d records, %d failures",
            self._state.processed, self._state.records, len(self._state.failures),
        )
        return CrawlSummary(
            start_url=self._options.start_url,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            processed=self._state.processed,
            enqueued=queue.total_enqueued,
            records=self._records,
            failures=list(self._state.failures),
        )

    def _results_full(self) -> bool:
        return self._state.records >= self._options.max_results

    async def _worker(self, queue: WorkQueue) -> None:
        while True:
            item = await queue.get()
            try:
                if self._results_full():
                    logger.debug("Result limit reached, skipping %s %s", item.label, item.url)
                    continue
                outcome = await self._orchestrator.process(item)
                self._apply(queue, outcome)
            except Exception:
                logger.exception("Worker failed on %s", item.url)
            finally:
                queue.task_done()

    def _apply(self, queue: WorkQueue, outcome: StepOutcome) -> None:
        # Records finished by in-flight workers after the limit was hit are discarded
        if outcome.record is not None and self._results_full():
            outcome = outcome.model_copy(update={"record": None})

        self._state = self._state.apply(outcome)
        if outcome.enqueue:
            queue.enqueue(outcome.enqueue)
        if outcome.record is not None:
            self._records.append(outcome.record)
            self._sink.append(outcome.record)
        if outcome.failure is not None:
            self._reporter.report(outcome.failure)


def build_crawler(
    settings: Settings,
    client: httpx.AsyncClient,
    renderer: PageRenderer,
    options: CrawlOptions,
    sink: RecordSink | None = None,
) -> CrawlerService:
    enricher = WebsiteEnricherService(
        HttpFetcher(client),
        stop_policy=get_stop_policy(options.stop_policy),
        options=EnrichOptions.from_settings(settings),
    )
    orchestrator = CrawlOrchestrator(
        renderer,
        enricher=enricher,
        contact_paths=options.contact_page_paths,
        fetch_contacts_from_website=options.fetch_contacts_from_website,
    )
    if sink is None and settings.output_path:
        sink = JsonLinesSink(settings.output_path)
    return CrawlerService(orchestrator, options, sink=sink)
