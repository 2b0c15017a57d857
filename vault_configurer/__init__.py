"""
Vault Configurer - keeps a running Vault instance configured from declarative files.

Configuration files are rendered as templates, parsed as YAML or JSON and
applied to Vault once it is unsealed. In watch mode every change of a file,
including atomic updates of mounted Kubernetes volumes, is applied again.
"""

__version__ = "0.1.0"

# Public API exports
from .core.domain.configuration import ConfigSource, ParsedConfiguration
from .core.interfaces.vault import IVaultClient
from .application.reconciler import Reconciler
from .application.runner import ConfigurationRunner

__all__ = [
    "ConfigSource",
    "ParsedConfiguration",
    "IVaultClient",
    "Reconciler",
    "ConfigurationRunner",
]
