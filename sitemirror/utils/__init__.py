"""
Utility modules for the crawler.
"""

from .config import Config, ConfigManager, load_config, parse_duration

__all__ = ['Config', 'ConfigManager', 'load_config', 'parse_duration']
