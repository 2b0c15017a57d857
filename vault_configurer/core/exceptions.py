"""
Exception hierarchy for the Vault configurer.

Fatal errors (bad template, bad document, watcher or client setup failures)
are raised from the leaf routines and only converted into a process exit at
the command-line layer.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Error codes."""
    CONFIG_ERROR = 10001
    TEMPLATE_ERROR = 10002
    PARSE_ERROR = 10003
    WATCHER_ERROR = 10004
    VAULT_ERROR = 10005


class VaultConfigurerError(Exception):
    """Base exception."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class ConfigurationError(VaultConfigurerError):
    """A configuration file could not be turned into a configuration."""

    def __init__(self, message: str, details: Any = None,
                 code: ErrorCode = ErrorCode.CONFIG_ERROR):
        super().__init__(code, message, details)


class TemplateRenderError(ConfigurationError):
    """Reading or evaluating a configuration template failed."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, details, ErrorCode.TEMPLATE_ERROR)


class ConfigParseError(ConfigurationError):
    """Rendered content is not a valid YAML/JSON configuration."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, details, ErrorCode.PARSE_ERROR)


class WatcherError(VaultConfigurerError):
    """The file system watch could not be established."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.WATCHER_ERROR, message, details)


class VaultClientError(VaultConfigurerError):
    """Vault rejected a request or the client could not be created."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(ErrorCode.VAULT_ERROR, message, details)
