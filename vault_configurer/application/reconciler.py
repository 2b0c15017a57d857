"""
Reconciliation loop.

Drains the queue of parsed configurations in arrival order and applies each
one to Vault once Vault is reachable and unsealed.
"""

import asyncio
import logging
from typing import Any, Optional

from ..core.domain.configuration import ParsedConfiguration
from ..core.interfaces.vault import IVaultClient

logger = logging.getLogger(__name__)

# Marks the end of a queue that will receive no further configurations
QUEUE_CLOSED = None


class Reconciler:
    """
    Applies queued configurations to Vault one at a time.

    For every configuration the seal state is polled until Vault answers
    and reports itself unsealed, sleeping ``unseal_period`` seconds between
    polls with no limit on the number of attempts. The configuration is then
    applied exactly once: a rejected configuration is logged and dropped,
    since only a new edit of the file can fix it.
    """

    def __init__(self, client: IVaultClient, unseal_period: float) -> None:
        self.client = client
        self.unseal_period = unseal_period

    async def wait_until_unsealed(self) -> None:
        """Block until Vault reports that it is unsealed."""
        while True:
            logger.info("checking if vault is sealed...")
            try:
                sealed = await asyncio.to_thread(self.client.sealed)
            except Exception as e:
                logger.error(
                    f"error checking if vault is sealed: {e}, "
                    f"waiting {self.unseal_period}s before trying again...")
                await asyncio.sleep(self.unseal_period)
                continue

            if sealed:
                logger.info(
                    f"vault is sealed, waiting {self.unseal_period}s before trying again...")
                await asyncio.sleep(self.unseal_period)
                continue

            return

    async def reconcile(self, config: ParsedConfiguration) -> bool:
        """
        Apply one configuration.

        Args:
            config: Configuration to apply

        Returns:
            True if Vault accepted the configuration
        """
        await self.wait_until_unsealed()

        logger.info("vault is unsealed, configuring...")
        try:
            await asyncio.to_thread(self.client.configure, config)
        except Exception as e:
            logger.error(f"error configuring vault from {config.config_file_used}: {e}")
            return False

        logger.info(f"successfully configured vault from {config.config_file_used}")
        return True

    async def drain(self, queue: "asyncio.Queue[Optional[ParsedConfiguration]]") -> int:
        """
        Consume the queue until it is closed.

        The queue is closed by putting ``QUEUE_CLOSED`` on it; a queue that
        is never closed is drained forever.

        Args:
            queue: Queue of parsed configurations

        Returns:
            Number of configurations processed
        """
        processed = 0
        while True:
            config = await queue.get()
            try:
                if config is QUEUE_CLOSED:
                    return processed

                logger.info(f"config file has changed: {config.config_file_used}")
                await self.reconcile(config)
                processed += 1
            finally:
                queue.task_done()


def close_queue(queue: "asyncio.Queue[Any]") -> None:
    """Mark the queue as receiving no further configurations."""
    queue.put_nowait(QUEUE_CLOSED)
