"""
Vault client built on hvac.
"""

from .client import HvacVaultClient

__all__ = [
    "HvacVaultClient",
]
