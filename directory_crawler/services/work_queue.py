import asyncio
import logging
from collections.abc import Iterable

from directory_crawler.mappers.normalize import normalize_url
from directory_crawler.schemas.work import WorkItem

logger = logging.getLogger(__name__)


class WorkQueue:
    """In-process work queue; each normalized URL is accepted once per crawl.

    ``enqueue`` does the membership check and the insert without awaiting in
    between, so concurrent workers on one event loop cannot both add a URL.
    """

    def __init__(self, max_items: int | None = None) -> None:
        self._queue: asyncio.Queue[WorkItem] = asyncio.Queue()
        self._seen: set[str] = set()
        self._max_items = max_items

    def enqueue(self, items: Iterable[WorkItem]) -> int:
        added = 0
        for item in items:
            key = item.key
            if key in self._seen:
                continue
            if self._max_items is not None and len(self._seen) >= self._max_items:
                logger.debug("Queue limit %d reached, not adding %s", self._max_items, item.url)
                continue
            self._seen.add(key)
            self._queue.put_nowait(item)
            added += 1
        return added

    async def get(self) -> WorkItem:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    @property
    def total_enqueued(self) -> int:
        return len(self._seen)

    def __contains__(self, url: str) -> bool:
        return normalize_url(url) in self._seen
