"""
Run option models.

This module defines the options the configurer is started with. They are read
once at startup and handed explicitly to the components that need them.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_CONFIG_FILE = "vault-config.yml"
DEFAULT_UNSEAL_PERIOD = 30.0
DEFAULT_PROJECTION_MARKER = "..data"

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    serialize: bool = False
    log_file: Optional[str] = None
    max_file_size: str = "10MB"
    backup_count: int = 5
    console_enabled: bool = True

    def __post_init__(self) -> None:
        self.level = self.level.upper()
        if self.level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.level}")


@dataclass
class VaultConfig:
    """Connection settings for the Vault client."""
    address: Optional[str] = None
    token: Optional[str] = None
    namespace: Optional[str] = None
    verify: bool = True
    timeout: float = 30.0


@dataclass
class ConfigureOptions:
    """Options of the configure loop."""

    # Run configure once and exit instead of watching the files
    once: bool = False
    # Backoff between seal checks while Vault is sealed or unreachable
    unseal_period: float = DEFAULT_UNSEAL_PERIOD
    config_files: List[str] = field(
        default_factory=lambda: [DEFAULT_CONFIG_FILE])
    # Directory entry swapped by atomic volume projections (Kubernetes ConfigMaps)
    projection_marker: str = DEFAULT_PROJECTION_MARKER

    def __post_init__(self) -> None:
        if not math.isfinite(self.unseal_period):
            raise ValueError(
                f"Unseal period must be finite, got {self.unseal_period}")
        if self.unseal_period < 0:
            raise ValueError(
                f"Unseal period must not be negative, got {self.unseal_period}")
        if not self.config_files:
            raise ValueError("At least one configuration file is required")
        if not self.projection_marker:
            raise ValueError("Projection marker cannot be empty")
