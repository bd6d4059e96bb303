from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from directory_crawler.schemas.crawl import CrawlSummary


class JobSubmittedResponse(BaseModel):
    job_id: str
    status: str
    message: str
    start_url: str | None = None


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    created_at: datetime
    finished_at: datetime | None = None
    start_url: str | None = None
    result: CrawlSummary | None = None
    error: str | None = None
