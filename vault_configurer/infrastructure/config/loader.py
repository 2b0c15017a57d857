"""
Configuration loading utilities.

This module turns a Vault configuration file into a ParsedConfiguration by
rendering it as a template and parsing the result as YAML or JSON, and
provides the converters used for run options.
"""

import json
import logging
import math
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ...core.domain.configuration import ConfigSource, ParsedConfiguration
from ...core.exceptions import ConfigParseError
from .template import TemplateRenderer

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Union[str, float, int]) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and Go style durations such as ``30s``,
    ``1m30s`` or ``500ms``.

    Raises:
        ValueError: If the value is not a valid, non-negative duration.
    """
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        if not text:
            raise ValueError("Empty duration")
        try:
            seconds = float(text)
        except ValueError:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
                pos = match.end()
            if pos != len(text):
                raise ValueError(f"Invalid duration: {value}")

    if not math.isfinite(seconds):
        raise ValueError(f"Duration must be finite: {value}")
    if seconds < 0:
        raise ValueError(f"Duration must not be negative: {value}")
    return seconds


class ConfigLoader:
    """Renders and parses Vault configuration files."""

    def __init__(self, renderer: Optional[TemplateRenderer] = None) -> None:
        self.renderer = renderer or TemplateRenderer()

    def load(self, source: Union[ConfigSource, str]) -> ParsedConfiguration:
        """
        Render and parse a configuration file.

        Nothing is cached, each call reads the file again.

        Args:
            source: Configuration file

        Returns:
            Parsed configuration tagged with its source

        Raises:
            TemplateRenderError: If the template cannot be rendered
            ConfigParseError: If the rendered document is invalid
        """
        if not isinstance(source, ConfigSource):
            source = ConfigSource(source)

        rendered = self.renderer.render(source)
        data = self.parse(rendered, source.path)
        logger.debug(f"Parsed configuration file: {source}")
        return ParsedConfiguration(source=source, data=data)

    def parse(self, content: bytes, file_path: str) -> Dict[str, Any]:
        """
        Parse rendered content, inferring the format from the file extension.

        Args:
            content: Rendered document
            file_path: Source file path, used for format inference and errors

        Returns:
            Top-level mapping of the document
        """
        suffix = Path(file_path).suffix.lower()

        if suffix in ['.yaml', '.yml']:
            data = self._load_yaml(content, file_path)
        elif suffix == '.json':
            data = self._load_json(content, file_path)
        else:
            raise ConfigParseError(
                f"Unsupported configuration file format: {suffix or file_path}", file_path)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigParseError(
                f"Configuration in {file_path} must be a mapping, got {type(data).__name__}",
                file_path)
        return data

    def _load_yaml(self, content: bytes, file_path: str) -> Any:
        """Load a YAML document."""
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigParseError(
                f"Invalid YAML in {file_path}: {e}", file_path) from e

    def _load_json(self, content: bytes, file_path: str) -> Any:
        """Load a JSON document."""
        if not content.strip():
            return None
        try:
            return json.loads(content)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigParseError(
                f"Invalid JSON in {file_path}: {e}", file_path) from e
