"""
Tests for the hvac backed Vault client.
"""

from typing import Any
from unittest.mock import Mock, call, patch

import pytest
import requests
from hvac.exceptions import Forbidden

from vault_configurer.core.exceptions import ErrorCode, VaultClientError
from vault_configurer.infrastructure.clients.vault import HvacVaultClient
from vault_configurer.infrastructure.config.models import VaultConfig


@pytest.fixture
def hvac_client() -> Mock:
    client = Mock()
    client.sys.is_sealed.return_value = False
    client.sys.list_auth_methods.return_value = {"data": {"token/": {"type": "token"}}}
    client.sys.list_mounted_secrets_engines.return_value = {
        "data": {"cubbyhole/": {"type": "cubbyhole"}, "sys/": {"type": "system"}}
    }
    client.sys.list_enabled_audit_devices.return_value = {"data": {}}
    return client


@pytest.fixture
def vault(hvac_client: Mock) -> HvacVaultClient:
    return HvacVaultClient(hvac_client)


class TestHvacVaultClient:
    """Test cases for HvacVaultClient."""

    def test_sealed(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        assert vault.sealed() is False

        hvac_client.sys.is_sealed.return_value = True
        assert vault.sealed() is True

    def test_sealed_propagates_connection_errors(self, vault: HvacVaultClient,
                                                 hvac_client: Mock) -> None:
        hvac_client.sys.is_sealed.side_effect = requests.ConnectionError("refused")

        with pytest.raises(requests.ConnectionError):
            vault.sealed()

    def test_empty_configuration(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        vault.configure({})

        hvac_client.sys.create_or_update_policy.assert_not_called()
        hvac_client.sys.enable_auth_method.assert_not_called()
        hvac_client.write_data.assert_not_called()

    def test_policies(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        vault.configure({
            "policies": [
                {"name": "reader", "rules": "path \"secret/*\" { capabilities = [\"read\"] }"},
                {"name": "admin", "rules": "path \"*\" { capabilities = [\"sudo\"] }"},
            ]
        })

        assert hvac_client.sys.create_or_update_policy.call_args_list == [
            call(name="reader", policy="path \"secret/*\" { capabilities = [\"read\"] }"),
            call(name="admin", policy="path \"*\" { capabilities = [\"sudo\"] }"),
        ]

    def test_policy_without_rules(self, vault: HvacVaultClient) -> None:
        with pytest.raises(VaultClientError, match="has no 'rules'"):
            vault.configure({"policies": [{"name": "reader"}]})

    def test_auth_method_is_enabled_and_configured(self, vault: HvacVaultClient,
                                                   hvac_client: Mock) -> None:
        vault.configure({
            "auth": [{
                "type": "kubernetes",
                "config": {"kubernetes_host": "https://kubernetes.default.svc"},
                "roles": [{"name": "default", "policies": ["reader"], "ttl": "1h"}],
            }]
        })

        hvac_client.sys.enable_auth_method.assert_called_once_with(
            method_type="kubernetes", path="kubernetes", description=None, config=None)
        assert hvac_client.write_data.call_args_list == [
            call("auth/kubernetes/config",
                 data={"kubernetes_host": "https://kubernetes.default.svc"}),
            call("auth/kubernetes/role/default", data={"policies": ["reader"], "ttl": "1h"}),
        ]

    def test_auth_method_custom_path(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        vault.configure({
            "auth": [{"type": "userpass", "path": "/people/",
                      "users": [{"name": "alice", "password": "secret"}]}]
        })

        hvac_client.sys.enable_auth_method.assert_called_once_with(
            method_type="userpass", path="people", description=None, config=None)
        hvac_client.write_data.assert_called_once_with(
            "auth/people/users/alice", data={"password": "secret"})

    def test_existing_auth_method_is_not_enabled_again(self, vault: HvacVaultClient,
                                                       hvac_client: Mock) -> None:
        hvac_client.sys.list_auth_methods.return_value = {
            "data": {"token/": {"type": "token"}, "approle/": {"type": "approle"}}
        }

        vault.configure({"auth": [{"type": "approle", "roles": [{"name": "ci"}]}]})

        hvac_client.sys.enable_auth_method.assert_not_called()
        hvac_client.write_data.assert_called_once_with("auth/approle/role/ci", data={})

    def test_secrets_engine(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        vault.configure({
            "secrets": [{
                "type": "database",
                "path": "db",
                "description": "Databases",
                "configuration": {
                    "config": [{"name": "postgres", "plugin_name": "postgresql-database-plugin"}],
                    "roles": [{"name": "readonly", "db_name": "postgres"}],
                },
            }]
        })

        hvac_client.sys.enable_secrets_engine.assert_called_once_with(
            backend_type="database", path="db", description="Databases", config=None, options=None)
        assert hvac_client.write_data.call_args_list == [
            call("db/config/postgres", data={"plugin_name": "postgresql-database-plugin"}),
            call("db/roles/readonly", data={"db_name": "postgres"}),
        ]

    def test_kv_options(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        vault.configure({"secrets": [{"type": "kv", "path": "secret", "options": {"version": 2}}]})

        hvac_client.sys.enable_secrets_engine.assert_called_once_with(
            backend_type="kv", path="secret", description=None, config=None,
            options={"version": 2})

    def test_existing_secrets_engine_is_not_enabled_again(self, vault: HvacVaultClient,
                                                          hvac_client: Mock) -> None:
        vault.configure({"secrets": [{"type": "cubbyhole"}]})

        hvac_client.sys.enable_secrets_engine.assert_not_called()

    def test_audit_device(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        vault.configure({
            "audit": [{"type": "file", "options": {"file_path": "/vault/logs/audit.log"}}]
        })

        hvac_client.sys.enable_audit_device.assert_called_once_with(
            device_type="file", path="file", description=None,
            options={"file_path": "/vault/logs/audit.log"})

    def test_existing_audit_device_is_skipped(self, vault: HvacVaultClient,
                                              hvac_client: Mock) -> None:
        hvac_client.sys.list_enabled_audit_devices.return_value = {
            "data": {"file/": {"type": "file"}}
        }

        vault.configure({"audit": [{"type": "file"}]})

        hvac_client.sys.enable_audit_device.assert_not_called()

    def test_sections_applied_in_order(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        vault.configure({
            "audit": [{"type": "file"}],
            "secrets": [{"type": "kv"}],
            "auth": [{"type": "approle"}],
            "policies": [{"name": "reader", "rules": "path \"*\" {}"}],
        })

        names = [c[0] for c in hvac_client.sys.method_calls
                 if not c[0].startswith("list_")]
        assert names == [
            "create_or_update_policy",
            "enable_auth_method",
            "enable_secrets_engine",
            "enable_audit_device",
        ]

    def test_vault_error_is_wrapped(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        hvac_client.sys.create_or_update_policy.side_effect = Forbidden("permission denied")

        with pytest.raises(VaultClientError, match="permission denied") as exc_info:
            vault.configure({"policies": [{"name": "reader", "rules": "path \"*\" {}"}]})

        assert exc_info.value.code == ErrorCode.VAULT_ERROR

    def test_connection_error_is_wrapped(self, vault: HvacVaultClient, hvac_client: Mock) -> None:
        hvac_client.sys.list_auth_methods.side_effect = requests.ConnectionError("refused")

        with pytest.raises(VaultClientError, match="error configuring vault"):
            vault.configure({"auth": [{"type": "approle"}]})

    def test_entry_without_type(self, vault: HvacVaultClient) -> None:
        with pytest.raises(VaultClientError, match="Missing 'type'"):
            vault.configure({"secrets": [{"path": "secret"}]})

    def test_entry_without_name(self, vault: HvacVaultClient) -> None:
        with pytest.raises(VaultClientError, match="needs a 'name'"):
            vault.configure({"auth": [{"type": "approle", "roles": [{"policies": []}]}]})

    def test_collection_must_be_list(self, vault: HvacVaultClient) -> None:
        with pytest.raises(VaultClientError, match="must be a list"):
            vault.configure({"policies": {"name": "reader"}})


class TestFromConfig:
    """Test cases for building the client from settings."""

    @patch("vault_configurer.infrastructure.clients.vault.client.hvac.Client")
    def test_from_config(self, client_class: Any) -> None:
        config = VaultConfig(address="https://vault:8200", token="s.token", namespace="team")

        vault = HvacVaultClient.from_config(config)

        client_class.assert_called_once_with(
            url="https://vault:8200", token="s.token", namespace="team", verify=True, timeout=30.0)
        assert isinstance(vault, HvacVaultClient)

    @patch("vault_configurer.infrastructure.clients.vault.client.hvac.Client")
    def test_from_config_error(self, client_class: Any) -> None:
        client_class.side_effect = ValueError("bad url")

        with pytest.raises(VaultClientError, match="error connecting to vault"):
            HvacVaultClient.from_config(VaultConfig())
