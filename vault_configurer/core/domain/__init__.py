"""
Domain models for configuration files and parsed configurations.
"""

from .configuration import ConfigSource, ParsedConfiguration

__all__ = [
    "ConfigSource",
    "ParsedConfiguration",
]
