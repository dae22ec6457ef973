"""
Mirrors fetched resources onto the local filesystem.

A resource at URL path ``/a/b.css`` is written to ``<root>/a/b.css``.
"""

import logging
import posixpath
from pathlib import Path
from typing import Any, Dict, Union
from urllib.parse import unquote, urlsplit

from ..crawler.errors import PersistFailure


INDEX_FILENAME = 'index.html'


class MirrorStorage:
    """File-based mirror of the remote path tree."""

    def __init__(self, root: Union[str, Path], index_filename: str = INDEX_FILENAME):
        self.root = Path(root)
        self.index_filename = index_filename
        self.logger = logging.getLogger(__name__)
        self.stats = {
            'total_stored': 0,
            'storage_errors': 0,
            'total_size_bytes': 0
        }

    async def initialize(self):
        """Create the output root."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistFailure(f"Failed to create output root: {e}", str(self.root)) from e
        self.logger.info(f"Mirror storage initialized at {self.root}")

    def path_for(self, url: str) -> Path:
        """
        Map a URL onto a file below the root.

        Directory URLs (empty path or trailing slash) get ``index.html``.
        The query string is ignored, and ``..`` segments cannot climb
        above the root.
        """
        raw_path = unquote(urlsplit(url).path)

        segments = [
            segment for segment in posixpath.normpath('/' + raw_path).split('/')
            if segment and segment != '..'
        ]
        if not segments or raw_path.endswith('/'):
            segments.append(self.index_filename)

        return self.root.joinpath(*segments)

    async def store(self, url: str, content: bytes) -> Path:
        """
        Write the raw response body for ``url``.

        Returns:
            The path written

        Raises:
            PersistFailure: if the directories or the file cannot be written
        """
        file_path = self.path_for(url)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(content)
        except (OSError, ValueError) as e:
            # ValueError: a decoded NUL byte in the path
            self.stats['storage_errors'] += 1
            raise PersistFailure(f"Error writing {file_path}: {e}", url) from e

        self.stats['total_stored'] += 1
        self.stats['total_size_bytes'] += len(content)
        self.logger.debug(f"Stored {len(content)} bytes to {file_path}")
        return file_path

    def get_stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        return self.stats.copy()
