"""
Core module containing domain models, service interfaces and errors.

This module is independent of the template engine, the file watching
library and the Vault client library.
"""

from .interfaces.vault import IVaultClient
from .domain.configuration import ConfigSource, ParsedConfiguration

__all__ = [
    "IVaultClient",
    "ConfigSource",
    "ParsedConfiguration",
]
