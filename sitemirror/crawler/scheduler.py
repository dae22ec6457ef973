"""
Crawler scheduler that coordinates crawling tasks and manages the overall crawl process.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .errors import CrawlError, MalformedURL
from .fetcher import WebFetcher
from .host_policy import HostPolicy, create_host_policy
from .normalizer import is_absolute, normalize
from .parser import LinkExtractor
from .url_frontier import URLFrontier
from ..storage.mirror import MirrorStorage
from ..utils.config import Config
from ..utils.monitoring import CrawlerMonitor


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    urls_dispatched: int = 0
    urls_fetched: int = 0
    pages_stored: int = 0
    bytes_stored: int = 0
    references_found: int = 0
    urls_enqueued: int = 0
    host_rejections: int = 0
    errors: Dict[str, int] = field(default_factory=dict)

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    @property
    def total_errors(self) -> int:
        return sum(self.errors.values())


class CrawlerScheduler:
    """
    Drains the frontier one dispatch per tick.

    Every ``wait_between`` seconds at most one URL is dequeued and handed to
    its own task, which fetches it, writes it to the mirror, extracts its
    references and enqueues them. Many tasks may be in flight at once.

    The crawl ends when the frontier's join barrier releases: the queue is
    empty and every dequeued URL has finished, so no task is left that
    could enqueue more work.
    """

    def __init__(self, config: Config,
                 fetcher: Optional[WebFetcher] = None,
                 storage: Optional[MirrorStorage] = None,
                 extractor: Optional[LinkExtractor] = None,
                 host_policy: Optional[HostPolicy] = None,
                 monitor: Optional[CrawlerMonitor] = None,
                 progress_interval: float = 30.0):
        self.config = config
        self.logger = logging.getLogger(__name__)

        crawler = config.crawler
        self.wait_between = crawler.wait_between
        self.progress_interval = progress_interval

        # Seeds go in before the dispatcher runs, so they must all fit
        self.frontier = URLFrontier(max(crawler.queue_capacity, len(crawler.seed_urls)))
        self.fetcher = fetcher or WebFetcher(
            user_agent=crawler.user_agent,
            request_timeout=crawler.request_timeout
        )
        self.storage = storage or MirrorStorage(crawler.output_root)
        self.extractor = extractor or LinkExtractor()
        self.host_policy = host_policy or create_host_policy(crawler.host_policy)
        self.monitor = monitor or CrawlerMonitor()

        # Crawl state
        self.stats = CrawlStats(start_time=time.time())
        self.is_running = False
        self.in_flight = 0
        self._tasks: Set[asyncio.Task] = set()
        self._last_dispatch: Optional[float] = None

    async def initialize(self):
        """Prepare storage, the HTTP session and the metrics endpoint."""
        await self.storage.initialize()
        await self.fetcher.start()

        port = self.config.monitoring.prometheus_port
        if port:
            self.monitor.start_server(port)

        self.logger.info("Crawler scheduler initialized")

    async def add_seed_urls(self, seed_urls: Optional[Iterable[str]] = None) -> int:
        """
        Register seed hosts and enqueue the seeds.

        Seeds bypass the host policy at enqueue time like every other URL.

        Raises:
            MalformedURL: if a seed is not an absolute URL
        """
        if seed_urls is None:
            seed_urls = self.config.crawler.seed_urls

        seeds = []
        for url in seed_urls:
            if not is_absolute(url):
                raise MalformedURL("seed URL must be absolute", url)
            seed = normalize(url)
            self.host_policy.register(seed)
            seeds.append(seed)
        self.host_policy.freeze()

        added_count = await self.frontier.enqueue_many(seeds)
        self.stats.urls_enqueued += added_count
        self.monitor.record_enqueued(added_count)
        self.logger.info(f"Added {added_count} seed URLs to frontier")
        return added_count

    async def start_crawling(self):
        """Run the crawl until the frontier is exhausted or the crawl is stopped."""
        if self.is_running:
            self.logger.warning("Crawler is already running")
            return

        if self.frontier.is_empty():
            self.logger.info("Frontier is empty, nothing to crawl")
            return

        self.is_running = True
        self.stats.start_time = time.time()
        watcher = asyncio.create_task(self._watch_completion())
        reporter = asyncio.create_task(self._stats_reporter())

        try:
            while True:
                await self._pace()
                url = await self.frontier.dequeue()
                if url is None:
                    break
                self._dispatch(url)

            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)

            self._log_final_stats()
        finally:
            self.is_running = False
            for task in (watcher, reporter):
                task.cancel()
            await asyncio.gather(watcher, reporter, return_exceptions=True)

    async def _pace(self):
        """Sleep until ``wait_between`` has passed since the last dispatch."""
        if self._last_dispatch is None:
            return
        loop = asyncio.get_running_loop()
        delay = self._last_dispatch + self.wait_between - loop.time()
        if delay > 0:
            await asyncio.sleep(delay)

    def _dispatch(self, url: str):
        self._last_dispatch = asyncio.get_running_loop().time()
        self.in_flight += 1
        self.stats.urls_dispatched += 1
        self.monitor.update_in_flight(self.in_flight)
        self.monitor.update_queue_size(self.frontier.qsize())

        task = asyncio.create_task(self._process_url(url))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _watch_completion(self):
        await self.frontier.join()
        # join only returns once every dequeued URL was marked done
        self.logger.debug(f"Frontier drained (in flight: {self.in_flight})")
        self.frontier.close()

    async def _process_url(self, url: str):
        """Run one dispatch cycle, isolating any failure to this URL."""
        try:
            await self._crawl(url)
        except CrawlError as e:
            self._record_error(e.kind)
            self.logger.warning(str(e), extra={'url': url})
        except Exception as e:
            self._record_error('unexpected')
            self.logger.error(f"Error processing {url}: {e}", exc_info=True, extra={'url': url})
        finally:
            self.in_flight -= 1
            self.monitor.update_in_flight(self.in_flight)
            # Children were enqueued above, so this cannot release join early
            self.frontier.task_done()

    async def _crawl(self, url: str):
        if not self.host_policy.is_allowed(url):
            self._record_host_rejection(url)
            return

        result = await self.fetcher.fetch(url)
        self.stats.urls_fetched += 1
        self.monitor.record_fetch(result.fetch_time)
        result.raise_for_error()

        location = result.final_url
        self.host_policy.observe_response(location)
        # A lock taken by another response can land while this fetch was in flight
        if not self.host_policy.is_allowed(location):
            self._record_host_rejection(location)
            return

        await self.storage.store(location, result.content)
        self.stats.pages_stored += 1
        self.stats.bytes_stored += len(result.content)
        self.monitor.record_page_stored(len(result.content))
        self.logger.info(f"{result.content_type}: {location}", extra={'url': location})

        references = self.extractor.extract(result.content, result.content_type, location)
        self.stats.references_found += len(references)
        await self._queue_references(references, location)

    async def _queue_references(self, references: List[str], location: str):
        """Normalize references against ``location`` and enqueue them."""
        urls = []
        for reference in references:
            try:
                urls.append(normalize(reference, location))
            except MalformedURL as e:
                self._record_error(e.kind)
                self.logger.debug(f"Skipping reference from {location}: {e}")

        added_count = await self.frontier.enqueue_many(urls)
        self.stats.urls_enqueued += added_count
        self.monitor.record_enqueued(added_count)
        if added_count:
            self.logger.debug(f"Queued {added_count} new URLs from {location}")

    def _record_host_rejection(self, url: str):
        self.stats.host_rejections += 1
        self.monitor.record_host_rejection()
        self.logger.debug(f"Host not allowed: {url}", extra={'url': url})

    def _record_error(self, kind: str):
        self.stats.errors[kind] = self.stats.errors.get(kind, 0) + 1
        self.monitor.record_error(kind)

    async def _stats_reporter(self):
        """Periodically log crawl statistics."""
        while True:
            await asyncio.sleep(self.progress_interval)
            self._log_current_stats()

    def _log_current_stats(self):
        self.logger.info(
            f"Crawl Progress: "
            f"Dispatched={self.stats.urls_dispatched}, "
            f"Stored={self.stats.pages_stored}, "
            f"Queued={self.frontier.qsize()}, "
            f"InFlight={self.in_flight}, "
            f"Errors={self.stats.total_errors}"
        )

    def _log_final_stats(self):
        frontier_stats = self.frontier.get_stats()

        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"URLs dispatched: {self.stats.urls_dispatched}")
        self.logger.info(f"URLs fetched: {self.stats.urls_fetched}")
        self.logger.info(f"Pages stored: {self.stats.pages_stored}")
        self.logger.info(f"Data stored: {self.stats.bytes_stored / 1024 / 1024:.1f} MB")
        self.logger.info(f"Host policy rejections: {self.stats.host_rejections}")
        self.logger.info(f"Errors: {self.stats.errors or 0}")
        self.logger.info(f"URLs viewed: {frontier_stats['total_viewed']}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")

    async def stop_crawling(self):
        """Stop dispatching and abandon fetches still in flight."""
        self.logger.info("Stopping crawler...")
        self.frontier.close()

        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    async def close(self):
        """Close all connections and cleanup resources."""
        if self.is_running:
            await self.stop_crawling()
        await self.fetcher.close()
        self.logger.info("Crawler scheduler closed")

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        return {
            'urls_dispatched': self.stats.urls_dispatched,
            'urls_fetched': self.stats.urls_fetched,
            'pages_stored': self.stats.pages_stored,
            'bytes_stored': self.stats.bytes_stored,
            'references_found': self.stats.references_found,
            'urls_enqueued': self.stats.urls_enqueued,
            'host_rejections': self.stats.host_rejections,
            'errors': dict(self.stats.errors),
            'elapsed_time': self.stats.elapsed_time,
            'urls_in_queue': self.frontier.qsize(),
            'in_flight': self.in_flight,
            'is_running': self.is_running
        }
