"""
Configuration management for the crawler.
"""

import logging
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..crawler.host_policy import HOST_POLICIES, SEEDS


DEFAULT_WAIT = 0.02
DEFAULT_QUEUE_CAPACITY = 100

_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')
_DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}


def parse_duration(value: Union[str, int, float]) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and unit strings such as ``20ms``,
    ``1.5s`` or ``1m30s``.
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        try:
            seconds = float(text)
        except ValueError:
            parts = _DURATION_PART.findall(text)
            if not parts or ''.join(number + unit for number, unit in parts) != text:
                raise ValueError(f"Invalid duration: {value!r}")
            seconds = sum(float(number) * _DURATION_UNITS[unit] for number, unit in parts)

    if not 0 <= seconds < float("inf"):
        raise ValueError(f"Duration must be a non-negative finite value: {value!r}")
    return seconds


def split_seed_urls(value: Union[str, List[str], None]) -> List[str]:
    """Split a comma-separated seed list, dropping empty entries."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(',')
    return [url.strip() for url in value if url and url.strip()]


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    seed_urls: List[str] = field(default_factory=list)
    output_root: Optional[str] = None
    wait_between: float = DEFAULT_WAIT
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY
    host_policy: str = SEEDS
    user_agent: str = "sitemirror/1.0"
    request_timeout: Optional[float] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    prometheus_port: Optional[int] = None


@dataclass
class Config:
    """Main configuration class."""
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _section(cls, data: Optional[Dict[str, Any]], name: str):
    data = data or {}
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown {name} option(s): {', '.join(sorted(unknown))}")
    return cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self, overrides: Optional[Dict[str, Any]] = None) -> Config:
        """
        Load configuration from the YAML file (if any) and apply overrides.

        Args:
            overrides: Crawler options from the command line; ``None`` values
                are ignored

        Returns:
            The validated configuration
        """
        config_data: Dict[str, Any] = {}
        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as file:
                try:
                    config_data = yaml.safe_load(file) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid configuration file {self.config_path}: {e}") from e

        crawler_data = dict(config_data.get('crawler') or {})
        logging_data = dict(config_data.get('logging') or {})
        monitoring_data = dict(config_data.get('monitoring') or {})

        for key, value in (overrides or {}).items():
            if value is None:
                continue
            if key in ('log_level', 'log_file'):
                logging_data[key[len('log_'):]] = value
            elif key == 'prometheus_port':
                monitoring_data[key] = value
            else:
                crawler_data[key] = value

        crawler_data['seed_urls'] = split_seed_urls(crawler_data.get('seed_urls'))
        if 'wait_between' in crawler_data:
            crawler_data['wait_between'] = parse_duration(crawler_data['wait_between'])

        self._config = Config(
            crawler=_section(CrawlerConfig, crawler_data, 'crawler'),
            logging=_section(LoggingConfig, logging_data, 'logging'),
            monitoring=_section(MonitoringConfig, monitoring_data, 'monitoring'),
        )

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")

        crawler = self._config.crawler

        if not crawler.seed_urls:
            raise ValueError("At least one seed URL must be provided")

        if not crawler.output_root:
            raise ValueError("An output root directory must be provided")

        if crawler.wait_between < 0:
            raise ValueError("wait_between must be non-negative")

        if crawler.queue_capacity < 1:
            raise ValueError("queue_capacity must be at least 1")

        if crawler.host_policy not in HOST_POLICIES:
            raise ValueError(f"host_policy must be one of: {', '.join(HOST_POLICIES)}")

        if crawler.request_timeout is not None and crawler.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

        logging.getLogger(__name__).debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: Optional[str] = None,
                overrides: Optional[Dict[str, Any]] = None) -> Config:
    """Load configuration from file and command-line overrides."""
    return ConfigManager(config_path).load_config(overrides)
