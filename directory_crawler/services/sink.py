import logging
from pathlib import Path
from typing import Protocol

from directory_crawler.schemas.business import BusinessRecord
from directory_crawler.schemas.crawl import CrawlFailure

logger = logging.getLogger(__name__)


class RecordSink(Protocol):
    def append(self, record: BusinessRecord) -> None: ...


class MemorySink:
    def __init__(self) -> None:
        self.records: list[BusinessRecord] = []

    def append(self, record: BusinessRecord) -> None:
        self.records.append(record)


class JsonLinesSink(MemorySink):
    """Keeps records in memory and appends each one as a camelCase JSON line."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: BusinessRecord) -> None:
        super().append(record)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(record.model_dump_json(by_alias=True) + "\n")


class FailureReporter(Protocol):
    def report(self, failure: CrawlFailure) -> None: ...


class LoggingFailureReporter:
    def __init__(self) -> None:
        self.failures: list[CrawlFailure] = []

    def report(self, failure: CrawlFailure) -> None:
        self.failures.append(failure)
        logger.warning("Work item failed: %s %s - %s", failure.label, failure.url, failure.error)
