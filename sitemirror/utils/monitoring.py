"""
Crawl metrics exported through prometheus_client.
"""

import logging
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server


class CrawlerMonitor:
    """
    Prometheus metrics for one crawl.

    Each monitor owns its registry, so several crawls (or tests) in one
    process do not collide.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger(__name__)
        self.registry = registry or CollectorRegistry()

        self.fetches = Counter(
            'crawler_fetches_total',
            'Fetches sent to the transport',
            registry=self.registry
        )
        self.pages_stored = Counter(
            'crawler_pages_stored_total',
            'Resources written to the mirror',
            registry=self.registry
        )
        self.bytes_stored = Counter(
            'crawler_bytes_stored_total',
            'Bytes written to the mirror',
            registry=self.registry
        )
        self.urls_enqueued = Counter(
            'crawler_urls_enqueued_total',
            'New URLs added to the frontier',
            registry=self.registry
        )
        self.host_rejections = Counter(
            'crawler_host_rejections_total',
            'Dequeued URLs dropped by the host policy',
            registry=self.registry
        )
        self.errors = Counter(
            'crawler_errors_total',
            'Per-URL crawl errors',
            ['error_type'],
            registry=self.registry
        )
        self.fetch_duration = Histogram(
            'crawler_fetch_duration_seconds',
            'Time spent fetching a URL',
            registry=self.registry
        )
        self.queue_size = Gauge(
            'crawler_queue_size',
            'URLs waiting in the frontier',
            registry=self.registry
        )
        self.in_flight = Gauge(
            'crawler_in_flight',
            'Fetches currently in progress',
            registry=self.registry
        )

    def start_server(self, port: int):
        """Expose the registry over HTTP."""
        start_http_server(port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {port}")

    def record_fetch(self, fetch_time: float):
        self.fetches.inc()
        self.fetch_duration.observe(fetch_time)

    def record_page_stored(self, size: int):
        self.pages_stored.inc()
        self.bytes_stored.inc(size)

    def record_enqueued(self, count: int):
        if count:
            self.urls_enqueued.inc(count)

    def record_host_rejection(self):
        self.host_rejections.inc()

    def record_error(self, error_type: str):
        self.errors.labels(error_type=error_type).inc()

    def update_queue_size(self, size: int):
        self.queue_size.set(size)

    def update_in_flight(self, count: int):
        self.in_flight.set(count)

    def get_summary(self) -> Dict[str, Any]:
        """Current sample values keyed by sample name."""
        summary: Dict[str, Any] = {}
        for metric in self.registry.collect():
            for sample in metric.samples:
                if sample.name.endswith(('_created', '_bucket')):
                    continue
                if sample.labels:
                    key = sample.name + '{' + ','.join(
                        f'{k}="{v}"' for k, v in sorted(sample.labels.items())
                    ) + '}'
                else:
                    key = sample.name
                summary[key] = sample.value
        return summary
