"""Watches plugin roots for new or modified plugin files."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from watchdog.events import FileSystemEvent, PatternMatchingEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch

from fileplugin.plugins.paths import PluginPathSet

logger = logging.getLogger(__name__)


class _PluginFileHandler(PatternMatchingEventHandler):
    """Forwards modify events for files matching one extension."""

    def __init__(self, extension: str, callback: Callable[[str], None]) -> None:
        super().__init__(
            patterns=[f"*{extension}"],
            ignore_directories=True,
            case_sensitive=False,
        )
        self.extension = extension
        self._callback = callback

    def on_modified(self, event: FileSystemEvent) -> None:
        src = os.fsdecode(event.src_path)
        try:
            self._callback(src)
        except (Exception, SystemExit):
            logger.exception("Watcher callback failed for %s", src)


@dataclass(frozen=True)
class WatchHandle:
    """One scheduled watch for a (root, extension) pair."""

    root: str
    extension: str
    watch: ObservedWatch
    handler: _PluginFileHandler


class ChangeMonitor:
    """Installs one watchdog watch per root directory and extension.

    Newly created files surface through the modify event that follows their
    first write, so only ``modified`` is observed. Callbacks run on the
    observer thread and may overlap with scans or dependency resolution.
    """

    def __init__(
        self,
        callback: Callable[[str], None],
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self._callback = callback
        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._watches: list[WatchHandle] = []

    @property
    def watches(self) -> list[WatchHandle]:
        """Currently installed watch handles."""
        return list(self._watches)

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self, paths: PluginPathSet, extensions: Iterable[str]) -> None:
        """Begin watching every existing root for each extension."""
        if self._observer is not None:
            return
        observer = self._observer_factory()
        extensions = tuple(extensions)
        for root in paths.existing():
            for ext in extensions:
                handler = _PluginFileHandler(ext, self._callback)
                watch = observer.schedule(handler, root, recursive=False)
                self._watches.append(WatchHandle(root=root, extension=ext, watch=watch, handler=handler))
        observer.start()
        self._observer = observer
        logger.info(
            "Watching %d plugin location(s) with %d watch(es)",
            len({w.root for w in self._watches}),
            len(self._watches),
        )

    def stop(self) -> None:
        """Release every watch and stop the observer thread."""
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.unschedule_all()
        observer.stop()
        observer.join(timeout=5)
        self._watches.clear()
        logger.info("Stopped watching plugin locations")
