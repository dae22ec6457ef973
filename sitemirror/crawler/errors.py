"""
Error types raised by the crawl pipeline.

Every error is scoped to a single URL; the scheduler logs it and moves on.
"""

from typing import Optional


class CrawlError(Exception):
    """Base class for per-URL crawl failures."""

    kind = "crawl_error"

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url

    def __str__(self) -> str:
        message = super().__str__()
        if self.url:
            return f"{message}: {self.url}"
        return message


class MalformedURL(CrawlError):
    """A reference or seed could not be parsed as a URL."""

    kind = "malformed_url"


# Name used by the link pipeline for references found inside documents
MalformedReference = MalformedURL


class TransportFailure(CrawlError):
    """The request failed at the network layer."""

    kind = "transport_failure"


class UnsuccessfulStatus(CrawlError):
    """The server answered with something other than 200."""

    kind = "unsuccessful_status"

    def __init__(self, status_code: int, url: Optional[str] = None):
        super().__init__(str(status_code), url)
        self.status_code = status_code


class PersistFailure(CrawlError):
    """Creating directories or writing the response body failed."""

    kind = "persist_failure"


class ParseFailure(CrawlError):
    """Markup or stylesheet content could not be parsed."""

    kind = "parse_failure"
