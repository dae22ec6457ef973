"""
HTTP fetcher built on aiohttp.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import aiohttp
from aiohttp import ClientError, ClientSession, ClientTimeout

from .errors import TransportFailure, UnsuccessfulStatus
from .parser import media_type


DEFAULT_USER_AGENT = "sitemirror/1.0"


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: bytes = b''
    final_url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    content_type: str = ''
    error: Optional[str] = None
    fetch_time: float = 0.0

    def __post_init__(self):
        if self.final_url is None:
            self.final_url = self.url

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code == 200

    def raise_for_error(self):
        """Raise the matching crawl error if the fetch did not succeed."""
        if self.error is not None:
            raise TransportFailure(self.error, self.url)
        if self.status_code != 200:
            raise UnsuccessfulStatus(self.status_code, self.url)


class WebFetcher:
    """
    Fetches resources over HTTP and reports the post-redirect location.

    Failures never raise; they come back as a FetchResult with ``error``
    set. There are no retries.
    """

    def __init__(self, user_agent: str = DEFAULT_USER_AGENT,
                 request_timeout: Optional[float] = None):
        self.user_agent = user_agent
        self.request_timeout = request_timeout

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            kwargs = {'headers': {'User-Agent': self.user_agent}}
            # Without an explicit timeout aiohttp's own default applies
            if self.request_timeout:
                kwargs['timeout'] = ClientTimeout(total=self.request_timeout)

            self.session = aiohttp.ClientSession(**kwargs)
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL, following redirects.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult object containing the response data or error information
        """
        if self.session is None:
            await self.start()

        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url) as response:
                content = await response.read()
                fetch_time = time.time() - start_time

                if response.status == 200:
                    self.stats['successful_requests'] += 1
                    self.stats['total_bytes_downloaded'] += len(content)
                else:
                    self.stats['failed_requests'] += 1

                self.logger.debug(f"Fetched {url}: {response.status} ({len(content)} bytes)")
                return FetchResult(
                    url=url,
                    status_code=response.status,
                    content=content,
                    final_url=str(response.url),
                    headers=dict(response.headers),
                    content_type=media_type(response.headers.get('Content-Type')),
                    fetch_time=fetch_time
                )

        except asyncio.TimeoutError:
            error_msg = "Request timeout"
        except ClientError as e:
            error_msg = f"Client error: {e}"
        except ValueError as e:
            # yarl rejects some URLs only when the request is built
            error_msg = f"Invalid URL: {e}"

        self.stats['failed_requests'] += 1
        return FetchResult(
            url=url,
            status_code=0,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
