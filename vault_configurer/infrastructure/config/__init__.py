"""
Configuration file handling.

This module provides template rendering, parsing and file watching for the
declarative Vault configuration files, and the run option models.
"""

from .models import ConfigureOptions, LoggingConfig, VaultConfig
from .loader import ConfigLoader, parse_duration
from .template import TemplateRenderer
from .watcher import ConfigWatcher, ConfigFileHandler, IConfigWatcher

__all__ = [
    "ConfigureOptions",
    "LoggingConfig",
    "VaultConfig",
    "ConfigLoader",
    "parse_duration",
    "TemplateRenderer",
    "ConfigWatcher",
    "ConfigFileHandler",
    "IConfigWatcher",
]
