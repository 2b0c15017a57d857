"""
Main entry point for the Vault configurer.

This module provides the command-line interface. Fatal errors raised by the
configure loop (unusable configuration files, watcher or client setup
failures) end the process with exit code 1.
"""

import asyncio
import logging
import sys
from typing import List, Optional

import typer

from .application.runner import ConfigurationRunner
from .core.exceptions import ConfigurationError, VaultConfigurerError
from .core.interfaces.vault import IVaultClient
from .infrastructure.clients.vault import HvacVaultClient
from .infrastructure.config.loader import ConfigLoader, parse_duration
from .infrastructure.config.models import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_PROJECTION_MARKER,
    ConfigureOptions,
    LoggingConfig,
    VaultConfig,
)
from .infrastructure.logging.setup import setup_logging

ENV_PREFIX = "VAULT_CONFIGURER_"

# Create CLI application
cli = typer.Typer(
    name="vault-configurer",
    help="Configures a Vault instance from YAML/JSON configuration files and keeps it in sync"
)

logger = logging.getLogger(__name__)


@cli.command()
def configure(
    once: bool = typer.Option(
        False, "--once", envvar=f"{ENV_PREFIX}ONCE", help="Run configure only once"
    ),
    unseal_period: str = typer.Option(
        "30s", "--unseal-period", envvar=f"{ENV_PREFIX}UNSEAL_PERIOD",
        help="How often to check whether Vault is unsealed (e.g. 30s, 1m30s)"
    ),
    vault_config_file: List[str] = typer.Option(
        [DEFAULT_CONFIG_FILE], "--vault-config-file", "-f",
        envvar=f"{ENV_PREFIX}CONFIG_FILE",
        help="The filename of the YAML/JSON Vault configuration, can be repeated"
    ),
    projection_marker: str = typer.Option(
        DEFAULT_PROJECTION_MARKER, "--projection-marker",
        envvar=f"{ENV_PREFIX}PROJECTION_MARKER",
        help="Directory entry swapped when a mounted volume is updated atomically"
    ),
    vault_addr: Optional[str] = typer.Option(
        None, "--vault-addr", envvar="VAULT_ADDR", help="Vault address"
    ),
    vault_token: Optional[str] = typer.Option(
        None, "--vault-token", envvar="VAULT_TOKEN", help="Vault token"
    ),
    vault_namespace: Optional[str] = typer.Option(
        None, "--vault-namespace", envvar="VAULT_NAMESPACE", help="Vault namespace"
    ),
    log_level: str = typer.Option(
        "INFO", "--log-level", envvar=f"{ENV_PREFIX}LOG_LEVEL", help="Logging level"
    ),
    log_json: bool = typer.Option(
        False, "--log-json", envvar=f"{ENV_PREFIX}LOG_JSON", help="Log JSON records"
    ),
    log_file: Optional[str] = typer.Option(
        None, "--log-file", envvar=f"{ENV_PREFIX}LOG_FILE", help="Also log to this file"
    )
) -> None:
    """Configure Vault from the configuration files and watch them for changes."""

    try:
        options = ConfigureOptions(
            once=once,
            unseal_period=parse_duration(unseal_period),
            config_files=list(vault_config_file),
            projection_marker=projection_marker
        )
        logging_config = LoggingConfig(
            level=log_level, serialize=log_json, log_file=log_file)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    # Setup logging
    setup_logging(logging_config)

    try:
        client = HvacVaultClient.from_config(VaultConfig(
            address=vault_addr, token=vault_token, namespace=vault_namespace))
    except VaultConfigurerError as e:
        logger.error(f"error creating vault client: {e}")
        sys.exit(1)

    try:
        asyncio.run(run_configure(options, client))
    except KeyboardInterrupt:
        logger.info("Configurer interrupted by user")
    except VaultConfigurerError as e:
        logger.error(f"{e.code.name}: {e}")
        sys.exit(1)


@cli.command()
def validate(
    config_files: List[str] = typer.Argument(
        ..., help="Configuration files to validate")
) -> None:
    """Render and parse configuration files without contacting Vault."""

    config_loader = ConfigLoader()

    for config_file in config_files:
        try:
            config = config_loader.load(config_file)
        except ConfigurationError as e:
            typer.echo(f"Configuration validation failed: {e}", err=True)
            sys.exit(1)

        sections = ", ".join(config) or "none"
        typer.echo(f"Configuration file {config_file} is valid")
        typer.echo(f"Sections: {sections}")


async def run_configure(options: ConfigureOptions, client: IVaultClient) -> int:
    """
    Run the configure loop.

    Args:
        options: Run options
        client: Vault client to apply configurations with

    Returns:
        Number of configurations processed
    """
    mode = "once" if options.once else "watch"
    logger.info(
        f"Starting configure ({mode}) for {', '.join(options.config_files)}")

    runner = ConfigurationRunner(options, client)
    return await runner.run()


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
