"""
Test configuration and fixtures for crawler tests
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional

import pytest

from sitemirror.crawler.fetcher import FetchResult
from sitemirror.utils.config import Config, CrawlerConfig


@dataclass
class FakePage:
    """A canned response served by FakeFetcher."""
    body: bytes = b''
    content_type: str = 'text/html'
    status: int = 200
    final_url: Optional[str] = None
    delay: float = 0.0
    error: Optional[str] = None


class FakeFetcher:
    """In-memory stand-in for WebFetcher; unknown URLs answer 404."""

    def __init__(self, pages: Dict[str, FakePage]):
        self.pages = pages
        self.calls: List[str] = []
        self.call_times: List[float] = []
        self.started = False
        self.closed = False

    async def start(self):
        self.started = True

    async def close(self):
        self.closed = True

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        self.call_times.append(asyncio.get_running_loop().time())

        page = self.pages.get(url)
        if page is None:
            return FetchResult(url=url, status_code=404, content=b'not found',
                               content_type='text/plain')

        if page.delay:
            await asyncio.sleep(page.delay)

        if page.error:
            return FetchResult(url=url, status_code=0, error=page.error)

        return FetchResult(
            url=url,
            status_code=page.status,
            content=page.body,
            final_url=page.final_url or url,
            content_type=page.content_type,
        )


def html(*links: str, images=(), stylesheets=(), scripts=()) -> bytes:
    """Build a small HTML page with the given references."""
    head = ''.join(f'<link rel="stylesheet" href="{href}">' for href in stylesheets)
    head += ''.join(f'<script src="{src}"></script>' for src in scripts)
    body = ''.join(f'<a href="{href}">link</a>' for href in links)
    body += ''.join(f'<img src="{src}">' for src in images)
    return f'<html><head>{head}</head><body>{body}</body></html>'.encode('utf-8')


@pytest.fixture
def make_config(tmp_path):
    """Factory for crawl configs writing into a temporary mirror root."""

    def _make(*seed_urls: str, **crawler_options) -> Config:
        crawler_options.setdefault('wait_between', 0)
        return Config(crawler=CrawlerConfig(
            seed_urls=list(seed_urls),
            output_root=str(tmp_path / 'mirror'),
            **crawler_options
        ))

    return _make


@pytest.fixture
def mirror_root(tmp_path):
    return tmp_path / 'mirror'
