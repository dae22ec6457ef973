"""
URL normalization for frontier entries.

References found in documents are resolved against the location they were
found in, the way a relative path is resolved against the directory that
holds a file. The result is an absolute URL without a fragment, which is the
identity the frontier deduplicates on.
"""

import posixpath
import re
from typing import Optional
from urllib.parse import SplitResult, urlsplit, urlunsplit

from .errors import MalformedURL


_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')
_BAD_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def parse_url(url: str) -> SplitResult:
    """
    Split a URL string into its components, rejecting anything unparseable.

    Raises:
        MalformedURL: on control characters, broken percent-escapes,
            unbalanced IPv6 brackets or an invalid port.
    """
    if _CONTROL_CHARS.search(url):
        raise MalformedURL("invalid control character in URL", url)

    try:
        parts = urlsplit(url)
        # Port is validated lazily by urllib
        parts.port
    except ValueError as e:
        raise MalformedURL(str(e), url) from e

    if _BAD_ESCAPE.search(parts.path) or _BAD_ESCAPE.search(parts.netloc):
        raise MalformedURL("invalid URL escape", url)

    return parts


def is_absolute(url: str) -> bool:
    """True when the URL carries both a scheme and a host."""
    try:
        parts = parse_url(url.strip())
    except MalformedURL:
        return False
    return bool(parts.scheme and parts.netloc)


def _join_directory(base_path: str, ref_path: str) -> str:
    directory = posixpath.dirname(base_path) or '/'
    joined = posixpath.normpath(posixpath.join(directory, ref_path))

    if joined.startswith('//'):
        joined = '/' + joined.lstrip('/')

    # Directory references stay directory references
    if joined != '/' and (
        ref_path.endswith(('/', '/.', '/..')) or ref_path in ('.', '..')
    ):
        joined += '/'

    return joined


def normalize(reference: str, base: Optional[str] = None) -> str:
    """
    Resolve a possibly-relative reference into a canonical absolute URL.

    Args:
        reference: The raw reference string (href, src, css url()).
        base: Absolute URL of the document the reference was found in.

    Returns:
        Absolute URL with the fragment stripped.

    Raises:
        MalformedURL: if the reference cannot be parsed, or it is relative
            and no base was given.
    """
    ref = parse_url(reference.strip())

    if ref.scheme and ref.netloc:
        return urlunsplit(ref._replace(fragment=''))

    # mailto:, javascript:, data: and friends have no host to resolve
    if ref.scheme:
        return urlunsplit(ref._replace(fragment=''))

    if base is None:
        raise MalformedURL("relative reference without a base location", reference)

    location = parse_url(base)
    netloc = ref.netloc or location.netloc
    query = ref.query

    if ref.netloc or ref.path.startswith('/'):
        path = ref.path
    elif not ref.path:
        path = location.path
        query = ref.query or location.query
    else:
        path = _join_directory(location.path, ref.path)

    if netloc and path and not path.startswith('/'):
        path = '/' + path

    return urlunsplit((location.scheme, netloc, path, query, ''))
