from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from directory_crawler.schemas.business import BusinessRecord
from directory_crawler.schemas.work import WorkItem

DEFAULT_CONTACT_PATHS = ("/contact", "/contact-us", "/about", "/about-us")


class CrawlOptions(BaseModel):
    start_url: str
    max_results: int = 200
    fetch_contacts_from_website: bool = True
    contact_page_paths: list[str] = Field(default_factory=lambda: list(DEFAULT_CONTACT_PATHS))
    max_concurrency: int = 5
    stop_policy: str = "email"

    @property
    def max_requests(self) -> int:
        return max(500, self.max_results * 3)


class CrawlFailure(BaseModel):
    url: str
    label: str
    error: str


class StepOutcome(BaseModel):
    item: WorkItem
    enqueue: list[WorkItem] = []
    record: BusinessRecord | None = None
    failure: CrawlFailure | None = None
    dropped: bool = False  # unknown label


class CrawlState(BaseModel):
    """Counters for one crawl run. Each step returns a new state."""

    model_config = ConfigDict(frozen=True)

    processed: int = 0
    records: int = 0
    dropped: int = 0
    failures: tuple[CrawlFailure, ...] = ()

    def apply(self, outcome: StepOutcome) -> CrawlState:
        return self.model_copy(update={
            "processed": self.processed + 1,
            "records": self.records + (1 if outcome.record else 0),
            "dropped": self.dropped + (1 if outcome.dropped else 0),
            "failures": self.failures + ((outcome.failure,) if outcome.failure else ()),
        })


class CrawlSummary(BaseModel):
    start_url: str
    started_at: datetime
    finished_at: datetime | None = None
    processed: int = 0
    enqueued: int = 0
    records: list[BusinessRecord] = []
    failures: list[CrawlFailure] = []
