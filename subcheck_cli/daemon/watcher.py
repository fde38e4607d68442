"""Configuration file watcher.

Watches the directory holding the configuration file with watchdog and
calls back once per burst of changes to that file. Callbacks always run
on the watcher's own reload thread, one at a time, so the scheduler's
reconfigure() is never entered concurrently from here.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

# Event types that can change the file's content
_CHANGE_EVENTS = {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}


class ConfigWatcher:
    """Call ``on_change`` after the configuration file changes.

    Editors and atomic rewrites usually emit several events per save,
    so changes are debounced: the callback runs once the file has been
    quiet for ``debounce`` seconds.

    Example:
        watcher = ConfigWatcher(Path("config.yaml"), on_change=daemon.reload)
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        config_path: Path,
        on_change: Callable[[], None],
        debounce: float = 1.0,
    ) -> None:
        self._config_path = os.path.abspath(config_path)
        self._on_change = on_change
        self._debounce = debounce
        self._observer: Optional[Observer] = None
        self._reloader: Optional[threading.Thread] = None
        self._changed = threading.Event()
        self._stopping = threading.Event()

    @property
    def config_path(self) -> str:
        return self._config_path

    def matches(self, path: str) -> bool:
        return bool(path) and os.path.abspath(path) == self._config_path

    def notify(self) -> None:
        """Record that the configuration file changed."""
        self._changed.set()

    def start(self) -> None:
        if self._observer is not None:
            return

        self._stopping.clear()
        self._reloader = threading.Thread(
            target=self._reload_loop,
            name="subcheck-config-reload",
            daemon=True,
        )
        self._reloader.start()

        observer = Observer()
        observer.schedule(
            _ConfigEventHandler(self),
            os.path.dirname(self._config_path),
            recursive=False,
        )
        observer.start()
        self._observer = observer
        logger.info(f"Watching {self._config_path} for changes")

    def stop(self) -> None:
        if self._observer is None:
            return

        self._observer.stop()
        self._observer.join()
        self._observer = None

        self._stopping.set()
        self._changed.set()
        if self._reloader is not None and self._reloader is not threading.current_thread():
            self._reloader.join()
        self._reloader = None
        logger.debug("Configuration watcher stopped")

    def _reload_loop(self) -> None:
        while True:
            self._changed.wait()
            if self._stopping.is_set():
                return

            # Wait for the burst of events to settle
            while True:
                self._changed.clear()
                if self._stopping.wait(self._debounce):
                    return
                if not self._changed.is_set():
                    break

            logger.info("Configuration file changed")
            try:
                self._on_change()
            except Exception as e:
                logger.error(f"Failed to apply configuration change: {e}", exc_info=True)


class _ConfigEventHandler(FileSystemEventHandler):
    def __init__(self, watcher: ConfigWatcher) -> None:
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        paths = [os.fsdecode(event.src_path)]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(os.fsdecode(dest))
        if any(self._watcher.matches(p) for p in paths):
            self._watcher.notify()
