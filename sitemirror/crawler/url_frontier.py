"""
URL Frontier implementation for managing URLs to crawl.
Deduplicates on enqueue and hands URLs out in FIFO order.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional, Set


class URLFrontier:
    """
    Deduplicating work queue shared by the scheduler and its fetch tasks.

    Every URL is marked viewed the moment it is first enqueued and is never
    queued again. The queue is bounded: producers wait while it is full.

    The frontier doubles as the crawl's completion barrier. Each enqueued
    URL stays unfinished until :meth:`task_done` is called for it, so a
    worker that enqueues the links it found *before* marking its own URL
    done keeps :meth:`join` from returning early.
    """

    def __init__(self, max_size: int = 100):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.logger = logging.getLogger(__name__)
        self.max_size = max_size

        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self._viewed: Set[str] = set()
        self._closed = asyncio.Event()

        self.enqueued_count = 0
        self.dequeued_count = 0
        self.duplicate_count = 0

    async def enqueue(self, url: str) -> bool:
        """
        Add a URL to the frontier.
        Returns True if URL was added, False if it was already viewed.
        """
        if self._closed.is_set():
            return False

        # Check and insert happen without yielding to the event loop
        if url in self._viewed:
            self.duplicate_count += 1
            return False
        self._viewed.add(url)

        await self._queue.put(url)
        self.enqueued_count += 1
        self.logger.debug(f"Added URL to frontier: {url}")
        return True

    async def enqueue_many(self, urls: Iterable[str]) -> int:
        """Add multiple URLs to the frontier. Returns count of added URLs."""
        added_count = 0
        for url in urls:
            if await self.enqueue(url):
                added_count += 1
        return added_count

    async def dequeue(self) -> Optional[str]:
        """
        Wait for the next URL to crawl.
        Returns None once the frontier is closed.
        """
        if self._closed.is_set():
            return None

        getter = asyncio.ensure_future(self._queue.get())
        closer = asyncio.ensure_future(self._closed.wait())
        try:
            done, _ = await asyncio.wait(
                {getter, closer}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for future in (getter, closer):
                if not future.done():
                    future.cancel()

        if getter in done:
            self.dequeued_count += 1
            url = getter.result()
            self.logger.debug(f"Retrieved URL from frontier: {url}")
            return url
        return None

    def task_done(self):
        """Mark one dequeued URL as fully processed."""
        self._queue.task_done()

    async def join(self):
        """Wait until every enqueued URL has been marked done."""
        await self._queue.join()

    def close(self):
        """Refuse further URLs and release any waiting consumers."""
        if not self._closed.is_set():
            self._closed.set()
            self.logger.debug("URL frontier closed")

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def is_empty(self) -> bool:
        """True when no URL is waiting; fetches in flight may still add more."""
        return self._queue.empty()

    def qsize(self) -> int:
        return self._queue.qsize()

    def seen(self, url: str) -> bool:
        return url in self._viewed

    def get_stats(self) -> Dict[str, int]:
        """Get frontier statistics."""
        return {
            'total_queued': self._queue.qsize(),
            'total_viewed': len(self._viewed),
            'enqueued': self.enqueued_count,
            'dequeued': self.dequeued_count,
            'duplicates_skipped': self.duplicate_count,
            'closed': self.closed,
        }
