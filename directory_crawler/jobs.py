from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel

from directory_crawler.mappers.normalize import normalize_url
from directory_crawler.schemas.crawl import CrawlSummary


class JobStatus(StrEnum):
    pending = "pending"
    running = "running"
    completed = "completed"
    failed = "failed"


_FINISHED = (JobStatus.completed, JobStatus.failed)


class Job(BaseModel):
    job_id: str
    status: JobStatus
    created_at: datetime
    finished_at: datetime | None = None
    start_url: str | None = None
    result: CrawlSummary | None = None
    error: str | None = None


class JobStore:
    """In-memory crawl jobs. At most one pending/running job per start URL."""

    def __init__(self, max_jobs: int = 1000) -> None:
        self._jobs: dict[str, Job] = {}
        self._active_by_url: dict[str, str] = {}  # normalized start URL -> job_id
        self._max_jobs = max_jobs

    def create_job(self, start_url: str | None = None) -> Job:
        job = Job(
            job_id=uuid.uuid4().hex[:12],
            status=JobStatus.pending,
            created_at=datetime.now(timezone.utc),
            start_url=start_url,
        )
        self._jobs[job.job_id] = job
        if start_url:
            self._active_by_url[normalize_url(start_url)] = job.job_id
        self._drop_finished_overflow()
        return job

    def get_job(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def has_active_job(self, start_url: str) -> Job | None:
        """Return the pending/running crawl of the same start URL, if any."""
        job = self._jobs.get(self._active_by_url.get(normalize_url(start_url), ""))
        if job is None or job.status in _FINISHED:
            return None
        return job

    def mark_running(self, job_id: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.running

    def mark_completed(self, job_id: str, result: CrawlSummary) -> None:
        self._finish(job_id, JobStatus.completed, result=result)

    def mark_failed(self, job_id: str, error: str) -> None:
        self._finish(job_id, JobStatus.failed, error=error)

    def _finish(self, job_id: str, status: JobStatus, **fields) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            return
        job.status = status
        job.finished_at = datetime.now(timezone.utc)
        for name, value in fields.items():
            setattr(job, name, value)
        if job.start_url:
            key = normalize_url(job.start_url)
            if self._active_by_url.get(key) == job_id:
                del self._active_by_url[key]

    def _drop_finished_overflow(self) -> None:
        overflow = len(self._jobs) - self._max_jobs
        if overflow <= 0:
            return
        finished = sorted(
            (j for j in self._jobs.values() if j.status in _FINISHED),
            key=lambda j: j.finished_at,
        )
        for job in finished[:overflow]:
            del self._jobs[job.job_id]
