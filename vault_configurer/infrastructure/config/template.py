"""
Configuration template rendering.

Vault configuration files are Jinja2 templates evaluated with ``${`` and
``}`` as expression delimiters, so that a literal ``{{ }}`` inside the
document (for example in a Vault policy or a templated role) is left alone.
Statements use ``${% ... %}`` and comments ``${# ... #}``.

No data context is bound to the template. Everything an expression needs
comes from the helper functions below, most of which mirror the usual
Helm/Sprig helpers (``env``, ``b64enc``, ``sha256sum``, ``toYaml``, ...).
"""

import base64
import hashlib
import json
import logging
import os
import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

import yaml
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
)

from ...core.domain.configuration import ConfigSource
from ...core.exceptions import TemplateRenderError

logger = logging.getLogger(__name__)

VARIABLE_START = "${"
VARIABLE_END = "}"
BLOCK_START = "${%"
BLOCK_END = "%}"
COMMENT_START = "${#"
COMMENT_END = "#}"


def env(name: str, default: str = "") -> str:
    return os.environ.get(name, default)


def expandenv(value: str) -> str:
    return os.path.expandvars(value)


def default(default_value: Any, value: Any = None) -> Any:
    """Return ``value`` unless it is empty, in which case ``default_value``."""
    return value if value else default_value


def required(message: str, value: Any = None) -> Any:
    if value is None or value == "":
        raise ValueError(message)
    return value


def quote(value: Any) -> str:
    return json.dumps(str(value))


def squote(value: Any) -> str:
    return "'" + str(value) + "'"


def nindent(value: str, width: int = 4) -> str:
    pad = " " * width
    return "\n" + "\n".join(pad + line if line else line for line in str(value).splitlines())


def split(value: str, separator: Optional[str] = None) -> list:
    return value.split(separator)


def join(items: Any, separator: str = "") -> str:
    return separator.join(str(item) for item in items)


def make_list(*items: Any) -> list:
    return list(items)


def b64enc(value: Any) -> str:
    data = value if isinstance(value, bytes) else str(value).encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def b64dec(value: str) -> str:
    return base64.b64decode(value, validate=True).decode("utf-8")


def sha1sum(value: Any) -> str:
    return hashlib.sha1(str(value).encode("utf-8")).hexdigest()


def sha256sum(value: Any) -> str:
    return hashlib.sha256(str(value).encode("utf-8")).hexdigest()


def now() -> datetime:
    return datetime.now(timezone.utc)


def date(fmt: str = "%Y-%m-%d", value: Optional[datetime] = None) -> str:
    return (value or now()).strftime(fmt)


def uuidv4() -> str:
    return str(uuid.uuid4())


def rand_alpha_num(length: int) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def to_json(value: Any) -> str:
    return json.dumps(value)


def to_yaml(value: Any) -> str:
    return yaml.safe_dump(value, default_flow_style=False).rstrip("\n")


def from_json(value: str) -> Any:
    return json.loads(value)


def read_file(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


TEMPLATE_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "env": env,
    "expandenv": expandenv,
    "default": default,
    "required": required,
    "upper": lambda value: str(value).upper(),
    "lower": lambda value: str(value).lower(),
    "trim": lambda value: str(value).strip(),
    "replace": lambda value, old, new: str(value).replace(old, new),
    "quote": quote,
    "squote": squote,
    "nindent": nindent,
    "split": split,
    "join": join,
    "list": make_list,
    "b64enc": b64enc,
    "b64dec": b64dec,
    "sha1sum": sha1sum,
    "sha256sum": sha256sum,
    "now": now,
    "date": date,
    "uuidv4": uuidv4,
    "randAlphaNum": rand_alpha_num,
    "toJson": to_json,
    "toYaml": to_yaml,
    "fromJson": from_json,
    "file": read_file,
}

# Helpers that read naturally in a pipe: ${ "secret" | b64enc }
TEMPLATE_FILTERS: Dict[str, Callable[..., Any]] = {
    name: TEMPLATE_FUNCTIONS[name]
    for name in (
        "expandenv", "quote", "squote", "nindent", "split", "b64enc",
        "b64dec", "sha1sum", "sha256sum", "toJson", "toYaml", "fromJson",
    )
}


class TemplateRenderer:
    """Renders configuration files through Jinja2 with ``${ }`` delimiters."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def _create_environment(self, source: ConfigSource) -> Environment:
        # cache_size=0: every render re-reads the file from disk
        environment = Environment(
            loader=FileSystemLoader(source.directory, encoding=self.encoding),
            variable_start_string=VARIABLE_START,
            variable_end_string=VARIABLE_END,
            block_start_string=BLOCK_START,
            block_end_string=BLOCK_END,
            comment_start_string=COMMENT_START,
            comment_end_string=COMMENT_END,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            autoescape=False,
            cache_size=0,
        )
        environment.globals.update(TEMPLATE_FUNCTIONS)
        environment.filters.update(TEMPLATE_FILTERS)
        return environment

    def render(self, source: ConfigSource) -> bytes:
        """
        Render a configuration file.

        Args:
            source: Configuration file to render

        Returns:
            Rendered document bytes

        Raises:
            TemplateRenderError: If the file cannot be read or the template
                cannot be parsed or evaluated.
        """
        environment = self._create_environment(source)

        try:
            template = environment.get_template(source.name)
        except TemplateNotFound as e:
            raise TemplateRenderError(
                f"error reading vault config template {source}: file not found", source.path) from e
        except TemplateError as e:
            raise TemplateRenderError(
                f"error parsing vault config template {source}: {e}", source.path) from e
        except (OSError, ValueError) as e:
            raise TemplateRenderError(
                f"error reading vault config template {source}: {e}", source.path) from e

        try:
            rendered = template.render()
        except (TemplateError, OSError, ValueError) as e:
            raise TemplateRenderError(
                f"error executing vault config template {source}: {e}", source.path) from e

        logger.debug(f"Rendered configuration template: {source}")
        return rendered.encode(self.encoding)
