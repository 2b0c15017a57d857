"""
Client implementations for the services being configured.
"""

from .vault import HvacVaultClient

__all__ = [
    "HvacVaultClient",
]
