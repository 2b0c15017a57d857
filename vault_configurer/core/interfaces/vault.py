"""
Interface for the Vault client the reconciliation loop drives.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping


class IVaultClient(ABC):
    """Minimal contract of the target secrets service."""

    @abstractmethod
    def sealed(self) -> bool:
        """
        Query the current seal state.

        Returns:
            True if Vault is sealed and refuses configuration requests.

        Raises:
            Exception: If Vault cannot be reached.
        """
        pass

    @abstractmethod
    def configure(self, config: Mapping[str, Any]) -> None:
        """
        Apply a structured configuration.

        Implementations are expected to be idempotent: applying the same
        configuration twice must leave Vault in the same state.

        Args:
            config: Parsed configuration document

        Raises:
            VaultClientError: If Vault rejects part of the configuration.
        """
        pass
