"""
Configuration file watcher.

Each configuration file is watched through its containing directory rather
than the file itself, so that files replaced by an atomic rename (editors'
atomic saves, Kubernetes ConfigMap/Secret volume projections) are picked up.
Every relevant change renders and parses the file again and appends the
result to the reconciliation queue.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ...core.domain.configuration import ConfigSource, ParsedConfiguration
from ...core.exceptions import ConfigurationError, WatcherError
from .loader import ConfigLoader
from .models import DEFAULT_PROJECTION_MARKER

logger = logging.getLogger(__name__)


class IConfigWatcher(ABC):
    """Interface for configuration file watchers feeding the reconciliation queue."""

    @abstractmethod
    async def start(self) -> None:
        """
        Begin observing the configuration files.

        Raises:
            WatcherError: If a configuration directory cannot be watched
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop observing and wait for the observer threads to exit."""
        pass

    @property
    @abstractmethod
    def failed(self) -> "asyncio.Future[None]":
        """Future that fails once a watched file can no longer be loaded."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        pass


class ConfigFileHandler(FileSystemEventHandler):
    """
    Handles file system events of one watched directory for one file.

    An event is relevant when its path is the configuration file itself or
    its base name is the projection marker (``..data`` by default), and it
    is a write or a create. A move counts as a create of its destination,
    which is how inotify reports an entry renamed into the directory.
    """

    def __init__(
        self,
        source: ConfigSource,
        loader: ConfigLoader,
        publish: Callable[[ParsedConfiguration], Any],
        on_fatal: Callable[[BaseException], Any],
        projection_marker: str = DEFAULT_PROJECTION_MARKER
    ):
        """
        Initialize the file handler.

        Args:
            source: Configuration file to watch
            loader: Loader used to render and parse the file on change
            publish: Called with every freshly parsed configuration
            on_fatal: Called when the file can no longer be rendered or parsed
            projection_marker: Directory entry swapped by atomic projections
        """
        super().__init__()
        self.source = source
        self.loader = loader
        self.publish = publish
        self.on_fatal = on_fatal
        self.projection_marker = projection_marker

    def relevant_path(self, event: FileSystemEvent) -> Optional[str]:
        """Return the path that makes the event relevant, or None."""
        if event.event_type in (EVENT_TYPE_MODIFIED, EVENT_TYPE_CREATED):
            path = event.src_path
        elif event.event_type == EVENT_TYPE_MOVED:
            path = event.dest_path
        else:
            return None

        if not path:
            return None
        path = os.fsdecode(path)

        if os.path.abspath(path) == self.source.path:
            return path
        if os.path.basename(path) == self.projection_marker:
            return path
        return None

    def on_any_event(self, event: FileSystemEvent) -> None:
        """
        Reload the configuration on relevant events.

        Args:
            event: File system event
        """
        path = self.relevant_path(event)
        if path is None:
            return

        logger.debug(f"{event.event_type} event on {path}")
        logger.info(f"Change detected for configuration file: {self.source}")

        try:
            config = self.loader.load(self.source)
        except ConfigurationError as e:
            logger.error(f"Error reloading configuration {self.source}: {e}")
            self.on_fatal(e)
            return
        except Exception as e:
            logger.error(f"Error handling {event.event_type} event on {path}: {e}")
            return

        self.publish(config)


class ConfigWatcher(IConfigWatcher):
    """
    Watches configuration files with the watchdog library.

    One watch is scheduled per configured file's directory. Handlers run on
    the observer's threads and hand parsed configurations over to the event
    loop's queue in the order they were produced.
    """

    def __init__(
        self,
        sources: Iterable[ConfigSource],
        queue: "asyncio.Queue[Any]",
        loader: Optional[ConfigLoader] = None,
        projection_marker: str = DEFAULT_PROJECTION_MARKER
    ):
        """
        Initialize the configuration watcher.

        Args:
            sources: Configuration files to watch
            queue: Reconciliation queue fed with parsed configurations
            loader: Loader used to render and parse changed files
            projection_marker: Directory entry swapped by atomic projections
        """
        self.sources = list(sources)
        self.queue = queue
        self.loader = loader or ConfigLoader()
        self.projection_marker = projection_marker

        self._observer: Optional[Any] = None
        self._handlers: List[ConfigFileHandler] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._failed: Optional["asyncio.Future[None]"] = None
        self._running = False

    @property
    def failed(self) -> "asyncio.Future[None]":
        """Future that fails once a watched file becomes unusable."""
        if self._failed is None:
            raise RuntimeError("Configuration watcher has not been started")
        return self._failed

    def _publish(self, config: ParsedConfiguration) -> None:
        assert self._loop is not None
        self._loop.call_soon_threadsafe(self.queue.put_nowait, config)

    def _fail(self, error: BaseException) -> None:
        assert self._loop is not None
        self._loop.call_soon_threadsafe(self._set_failed, error)

    def _set_failed(self, error: BaseException) -> None:
        if self._failed is not None and not self._failed.done():
            self._failed.set_exception(error)

    async def start(self) -> None:
        """
        Start watching for configuration changes.

        Raises:
            WatcherError: If a directory cannot be watched
        """
        if self._running:
            logger.warning("Configuration watcher is already running")
            return

        for source in self.sources:
            if not os.path.isdir(source.directory):
                raise WatcherError(
                    f"Cannot watch configuration file {source}: "
                    f"directory {source.directory} does not exist")

        self._loop = asyncio.get_running_loop()
        self._failed = self._loop.create_future()
        self._observer = Observer()

        try:
            for source in self.sources:
                handler = ConfigFileHandler(
                    source=source,
                    loader=self.loader,
                    publish=self._publish,
                    on_fatal=self._fail,
                    projection_marker=self.projection_marker
                )
                self._observer.schedule(handler, source.directory, recursive=False)
                self._handlers.append(handler)

            self._observer.start()
        except OSError as e:
            self._observer.stop()
            self._observer = None
            self._handlers = []
            raise WatcherError(f"Failed to start configuration watcher: {e}") from e

        self._running = True
        for source in self.sources:
            logger.info(f"Started watching configuration file: {source}")

    async def stop(self) -> None:
        """Stop watching for configuration changes."""
        if not self._running:
            return

        if self._observer:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join, 5.0)
            self._observer = None

        self._handlers = []
        self._running = False

        logger.info("Stopped configuration file watcher")

    def is_running(self) -> bool:
        """Check if the watcher is currently running."""
        return self._running and self._observer is not None and self._observer.is_alive()
