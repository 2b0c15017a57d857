"""
Shared fixtures for the Vault configurer tests.
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import pytest

from vault_configurer.core.domain.configuration import ConfigSource, ParsedConfiguration
from vault_configurer.core.interfaces.vault import IVaultClient


class FakeVaultClient(IVaultClient):
    """In-memory Vault client recording every call."""

    def __init__(self) -> None:
        # Consumed one per seal check; a bool is returned, an exception raised.
        # Once exhausted Vault reports itself unsealed.
        self.seal_results: List[Union[bool, Exception]] = []
        # Configurations whose source file name is in here are rejected
        self.reject: Dict[str, Exception] = {}
        self.seal_checks = 0
        self.applied: List[Mapping[str, Any]] = []

    def sealed(self) -> bool:
        self.seal_checks += 1
        if self.seal_results:
            result = self.seal_results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return False

    def configure(self, config: Mapping[str, Any]) -> None:
        self.applied.append(config)
        if isinstance(config, ParsedConfiguration) and config.source.name in self.reject:
            raise self.reject[config.source.name]


@pytest.fixture
def vault_client() -> FakeVaultClient:
    return FakeVaultClient()


@pytest.fixture
def make_config() -> Callable[..., ParsedConfiguration]:
    """Factory for parsed configurations from a fictitious /etc/vault directory."""

    def factory(name: str, data: Optional[Dict[str, Any]] = None) -> ParsedConfiguration:
        return ParsedConfiguration(
            source=ConfigSource(f"/etc/vault/{name}"),
            data=data or {"policies": [{"name": name, "rules": "path \"*\" {}"}]}
        )

    return factory


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str, str], str]:
    """Write a configuration file into a temporary directory and return its path."""

    def writer(name: str, content: str) -> str:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)

    return writer
