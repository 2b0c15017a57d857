"""
Configuration domain models.

A ConfigSource identifies one declarative Vault configuration file on disk, a
ParsedConfiguration is the structured document produced from one render of it.
"""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping


@dataclass(frozen=True)
class ConfigSource:
    """
    Immutable reference to a configuration file.

    The path is made absolute and normalized on construction but symlinks are
    not resolved, since projected configuration files are usually symlinks
    into a directory that gets swapped atomically.
    """

    path: str
    """Absolute, normalized file path."""

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("Configuration file path cannot be empty")
        object.__setattr__(self, "path", os.path.abspath(self.path))

    @property
    def directory(self) -> str:
        """Directory containing the file; this is what gets watched."""
        return os.path.dirname(self.path)

    @property
    def name(self) -> str:
        """Base file name, used as the template name."""
        return os.path.basename(self.path)

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class ParsedConfiguration(Mapping[str, Any]):
    """
    Structured configuration produced by rendering and parsing a ConfigSource.

    Behaves as a read-only mapping over the top-level sections of the
    document (policies, auth, secrets, audit, ...).
    """

    source: ConfigSource
    """File this configuration was produced from."""

    data: Mapping[str, Any] = field(default_factory=dict)
    """Top-level document sections."""

    def __post_init__(self) -> None:
        if not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @property
    def config_file_used(self) -> str:
        return self.source.path

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)
