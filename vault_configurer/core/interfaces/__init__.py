"""
Core interfaces defining the contracts of the collaborators.
"""

from .vault import IVaultClient

__all__ = [
    "IVaultClient",
]
