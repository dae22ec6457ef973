"""
Web crawler core components.
"""

from .errors import (
    CrawlError, MalformedReference, MalformedURL, ParseFailure,
    PersistFailure, TransportFailure, UnsuccessfulStatus
)
from .fetcher import FetchResult, WebFetcher
from .host_policy import FirstResponseHostPolicy, HostPolicy, create_host_policy
from .normalizer import normalize
from .parser import LinkExtractor
from .url_frontier import URLFrontier

__all__ = [
    'CrawlError', 'MalformedReference', 'MalformedURL', 'ParseFailure',
    'PersistFailure', 'TransportFailure', 'UnsuccessfulStatus',
    'FetchResult', 'WebFetcher',
    'FirstResponseHostPolicy', 'HostPolicy', 'create_host_policy',
    'normalize', 'LinkExtractor', 'URLFrontier'
]
