"""
Run mode selection.

Seeds the reconciliation queue with every configured file and then either
drains it once (``once``) or keeps it open for the file watcher and drains it
until the process is terminated.
"""

import asyncio
import logging
from contextlib import suppress
from typing import Callable, Optional

from ..core.domain.configuration import ConfigSource, ParsedConfiguration
from ..core.interfaces.vault import IVaultClient
from ..infrastructure.config.loader import ConfigLoader
from ..infrastructure.config.models import ConfigureOptions
from ..infrastructure.config.watcher import ConfigWatcher, IConfigWatcher
from .reconciler import Reconciler, close_queue

logger = logging.getLogger(__name__)

WatcherFactory = Callable[..., IConfigWatcher]


class ConfigurationRunner:
    """
    Drives the configure loop for a set of configuration files.

    Render and parse failures are raised to the caller before anything is
    applied when they happen on the initial load, and as soon as the
    watcher reports them afterwards.
    """

    def __init__(
        self,
        options: ConfigureOptions,
        client: IVaultClient,
        loader: Optional[ConfigLoader] = None,
        watcher_factory: WatcherFactory = ConfigWatcher
    ) -> None:
        self.options = options
        self.client = client
        self.loader = loader or ConfigLoader()
        self.watcher_factory = watcher_factory
        self.sources = [ConfigSource(path) for path in options.config_files]

    def seed(self, queue: "asyncio.Queue[Optional[ParsedConfiguration]]") -> None:
        """Render and parse every configured file onto the queue."""
        for source in self.sources:
            queue.put_nowait(self.loader.load(source))

    async def run(self) -> int:
        """
        Run the configure loop.

        Returns:
            Number of configurations processed (only reached in once mode
            or when the queue is closed)

        Raises:
            ConfigurationError: If a configuration file cannot be rendered or parsed
            WatcherError: If the configuration files cannot be watched
        """
        queue: "asyncio.Queue[Optional[ParsedConfiguration]]" = asyncio.Queue()
        self.seed(queue)

        reconciler = Reconciler(self.client, self.options.unseal_period)

        if self.options.once:
            close_queue(queue)
            processed = await reconciler.drain(queue)
            logger.info(f"Processed {processed} configuration(s), exiting")
            return processed

        watcher = self.watcher_factory(
            self.sources,
            queue,
            loader=self.loader,
            projection_marker=self.options.projection_marker
        )
        await watcher.start()

        drain: "asyncio.Task[int]" = asyncio.create_task(reconciler.drain(queue))
        try:
            failed = watcher.failed
            await asyncio.wait({drain, failed}, return_when=asyncio.FIRST_COMPLETED)

            if failed.done():
                failed.result()
            return drain.result()
        finally:
            if not drain.done():
                drain.cancel()
                with suppress(asyncio.CancelledError):
                    await drain
            await watcher.stop()
