"""
Vault client implementation using hvac.

Applies a configuration document with the following top-level sections, in
this order:

    policies:
      - name: allow_secrets
        rules: path "secret/*" { capabilities = ["read"] }
    auth:
      - type: kubernetes
        path: kubernetes          # defaults to the type
        config: {...}             # written to auth/<path>/config
        roles: [{name: ..., ...}] # written to auth/<path>/role/<name>
    secrets:
      - type: kv
        path: secret
        options: {version: 2}
        configuration:
          roles: [{name: ..., ...}]   # written to <path>/roles/<name>
    audit:
      - type: file
        options: {file_path: /vault/logs/audit.log}

Mounts, auth methods and audit devices that already exist are left alone and
every write is an upsert, so applying the same document twice is safe.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import hvac
from hvac.exceptions import VaultError
import requests

from ....core.exceptions import VaultClientError
from ....core.interfaces.vault import IVaultClient
from ...config.models import VaultConfig

logger = logging.getLogger(__name__)

# auth/<path>/<section>/<name> collections written for auth methods
AUTH_COLLECTIONS = {
    "roles": "role",
    "users": "users",
    "groups": "groups",
}


def _mount_path(entry: Mapping[str, Any]) -> str:
    if "type" not in entry:
        raise VaultClientError(f"Missing 'type' in {dict(entry)}")
    return str(entry.get("path") or entry["type"]).strip("/")


def _mounted(response: Mapping[str, Any]) -> Iterable[str]:
    data = response.get("data", response)
    return [key.strip("/") for key, value in data.items() if isinstance(value, dict)]


def _named_items(section: str, items: Any) -> List[Dict[str, Any]]:
    if not isinstance(items, list):
        raise VaultClientError(f"'{section}' must be a list")
    result = []
    for item in items:
        if not isinstance(item, dict) or "name" not in item:
            raise VaultClientError(f"Every entry of '{section}' needs a 'name'")
        result.append(dict(item))
    return result


class HvacVaultClient(IVaultClient):
    """Vault client applying configuration documents through hvac."""

    def __init__(self, client: hvac.Client) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: VaultConfig) -> "HvacVaultClient":
        """
        Create a client from connection settings.

        Unset address and token fall back to ``VAULT_ADDR`` and
        ``VAULT_TOKEN`` the way hvac does.

        Raises:
            VaultClientError: If the client cannot be created
        """
        try:
            client = hvac.Client(
                url=config.address,
                token=config.token,
                namespace=config.namespace,
                verify=config.verify,
                timeout=config.timeout,
            )
        except (VaultError, requests.RequestException, ValueError) as e:
            raise VaultClientError(f"error connecting to vault: {e}") from e
        return cls(client)

    def sealed(self) -> bool:
        return bool(self._client.sys.is_sealed())

    def configure(self, config: Mapping[str, Any]) -> None:
        """
        Apply a configuration document.

        Raises:
            VaultClientError: If Vault rejects any part of the configuration
        """
        try:
            self._configure_policies(config.get("policies") or [])
            self._configure_auth_methods(config.get("auth") or [])
            self._configure_secrets_engines(config.get("secrets") or [])
            self._configure_audit_devices(config.get("audit") or [])
        except (VaultError, requests.RequestException) as e:
            raise VaultClientError(f"error configuring vault: {e}") from e

    def _write(self, path: str, data: Mapping[str, Any]) -> None:
        logger.debug(f"Writing vault path: {path}")
        self._client.write_data(path, data=dict(data))

    def _configure_policies(self, policies: Any) -> None:
        for policy in _named_items("policies", policies):
            if "rules" not in policy:
                raise VaultClientError(f"Policy {policy['name']} has no 'rules'")
            self._client.sys.create_or_update_policy(
                name=policy["name"], policy=policy["rules"])
            logger.info(f"Policy configured: {policy['name']}")

    def _configure_auth_methods(self, methods: Any) -> None:
        existing = set(_mounted(self._client.sys.list_auth_methods()))

        for method in methods:
            path = _mount_path(method)
            if path not in existing:
                self._client.sys.enable_auth_method(
                    method_type=method["type"],
                    path=path,
                    description=method.get("description"),
                    config=method.get("options"),
                )
                existing.add(path)
                logger.info(f"Auth method enabled: {method['type']} at {path}")

            if method.get("config"):
                self._write(f"auth/{path}/config", method["config"])

            for section, segment in AUTH_COLLECTIONS.items():
                if section not in method:
                    continue
                for item in _named_items(section, method[section]):
                    name = item.pop("name")
                    self._write(f"auth/{path}/{segment}/{name}", item)

    def _configure_secrets_engines(self, engines: Any) -> None:
        existing = set(_mounted(self._client.sys.list_mounted_secrets_engines()))

        for engine in engines:
            path = _mount_path(engine)
            if path not in existing:
                self._client.sys.enable_secrets_engine(
                    backend_type=engine["type"],
                    path=path,
                    description=engine.get("description"),
                    config=engine.get("config"),
                    options=engine.get("options"),
                )
                existing.add(path)
                logger.info(f"Secrets engine enabled: {engine['type']} at {path}")

            configuration: Optional[Mapping[str, Any]] = engine.get("configuration")
            for section, items in (configuration or {}).items():
                for item in _named_items(section, items):
                    name = item.pop("name")
                    self._write(f"{path}/{section}/{name}", item)

    def _configure_audit_devices(self, devices: Any) -> None:
        existing = set(_mounted(self._client.sys.list_enabled_audit_devices()))

        for device in devices:
            path = _mount_path(device)
            if path in existing:
                continue
            self._client.sys.enable_audit_device(
                device_type=device["type"],
                path=path,
                description=device.get("description"),
                options=device.get("options"),
            )
            existing.add(path)
            logger.info(f"Audit device enabled: {device['type']} at {path}")
