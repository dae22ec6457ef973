"""
Link extraction from fetched HTML documents and stylesheets.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Tuple

import soupsieve
import tinycss2
from bs4 import BeautifulSoup

from .errors import ParseFailure


HTML_CONTENT_TYPES = ('text/html', 'application/xhtml+xml')
CSS_CONTENT_TYPES = ('text/css',)

# (selector, attribute) pairs, queried in this order
DEFAULT_LINK_QUERIES = (
    ('a[href]', 'href'),
    ('img[src]', 'src'),
    ('link[href][rel="stylesheet"]', 'href'),
    ('script[src]', 'src'),
)


def media_type(content_type: Optional[str]) -> str:
    """Strip parameters from a Content-Type header value."""
    if not content_type:
        return ''
    return content_type.split(';', 1)[0].strip().lower()


class LinkExtractor:
    """
    Finds raw references in fetched content.

    Selectors are compiled once here and only read afterwards, so a single
    extractor can serve every concurrent fetch task. The extractor never
    resolves or enqueues anything; it hands back the strings exactly as
    they appear in the document.
    """

    def __init__(self, queries: Iterable[Tuple[str, str]] = DEFAULT_LINK_QUERIES,
                 html_parser: str = 'lxml'):
        self.logger = logging.getLogger(__name__)
        self.html_parser = html_parser
        self.queries = tuple(
            (soupsieve.compile(selector), attribute) for selector, attribute in queries
        )

    def extract(self, content: bytes, content_type: Optional[str], location: str) -> List[str]:
        """
        Extract raw references from a fetched resource.

        Args:
            content: Raw response body
            content_type: Content-Type header value (parameters allowed)
            location: Final URL of the resource, used for log messages

        Returns:
            Reference strings in the order they were found. Unsupported
            content types yield an empty list.

        Raises:
            ParseFailure: if the content cannot be parsed
        """
        kind = media_type(content_type)

        if kind in HTML_CONTENT_TYPES:
            references = self.extract_html(content, location)
        elif kind in CSS_CONTENT_TYPES:
            references = self.extract_css(content, location)
        else:
            return []

        self.logger.debug(f"Extracted {len(references)} references from {location}")
        return references

    def extract_html(self, content: bytes, location: str = '') -> List[str]:
        """Collect href/src values for anchors, images, stylesheets and scripts."""
        try:
            soup = BeautifulSoup(content, self.html_parser)
        except Exception as e:
            raise ParseFailure(f"Error parsing HTML: {e}", location) from e

        references = []
        for query, attribute in self.queries:
            for element in query.select(soup):
                value = element.get(attribute)
                if value:
                    references.append(value)
        return references

    def extract_css(self, content: bytes, location: str = '') -> List[str]:
        """Collect the targets of every url(...) in a stylesheet."""
        try:
            rules, _encoding = tinycss2.parse_stylesheet_bytes(
                content, skip_comments=True, skip_whitespace=True
            )
        except Exception as e:
            raise ParseFailure(f"Error parsing stylesheet: {e}", location) from e

        references = []
        for token in _walk(rules):
            value = _url_value(token)
            if value:
                references.append(value)
        return references


def _walk(nodes) -> Iterator:
    """Yield every component value, descending into rules, blocks and functions."""
    for node in nodes or ():
        yield node
        if node.type in ('qualified-rule', 'at-rule'):
            yield from _walk(node.prelude)
            yield from _walk(node.content)
        elif node.type in ('() block', '[] block', '{} block'):
            yield from _walk(node.content)
        elif node.type == 'function':
            yield from _walk(node.arguments)


def _url_value(token) -> Optional[str]:
    """Return the target of a url token, or None for anything else."""
    if token.type == 'url':
        return token.value.strip()

    if token.type == 'function' and token.lower_name == 'url':
        arguments = [arg for arg in token.arguments
                     if arg.type not in ('whitespace', 'comment')]
        # url("a.gif") parses as a function with a single string argument
        if len(arguments) == 1 and arguments[0].type == 'string':
            return arguments[0].value

    return None

