"""
Logging setup for the crawler.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .config import LoggingConfig


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # URL attached via extra={'url': ...}
        url = getattr(record, 'url', None)
        if url:
            log_entry['url'] = url

        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Configure the root logger.

    Logs always go to stdout; a rotating file handler is added when
    ``config.file`` is set.

    Args:
        config: Logging configuration

    Returns:
        Configured root logger
    """
    config = config or LoggingConfig()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))
    root_logger.handlers.clear()

    if config.json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=50 * 1024 * 1024,  # 50MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Configure third-party loggers
    for logger_name in ('aiohttp', 'asyncio'):
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.debug(f"Logging configured (level={config.level}, file={config.file})")
    return root_logger
