"""In-memory plugin host used by the CLI and tests."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import ModuleType

from fileplugin.interfaces.host import ConnectMode

logger = logging.getLogger(__name__)


@dataclass
class LoadedPlugin:
    """A module activated by the host."""

    name: str
    source: str
    mode: ConnectMode
    module: ModuleType
    loaded_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class InMemoryPluginRegistry:
    """Thread-safe plugin table keyed by source path.

    ``load_plugin`` is a compare-and-insert: a source already present
    (case-insensitive) is ignored, so concurrent discovery paths activate a
    file at most once.
    """

    def __init__(self, on_loaded: Callable[[LoadedPlugin], None] | None = None) -> None:
        self._lock = threading.Lock()
        self._plugins: list[LoadedPlugin] = []
        self._on_loaded = on_loaded

    def __iter__(self) -> Iterator[LoadedPlugin]:
        with self._lock:
            return iter(list(self._plugins))

    def __len__(self) -> int:
        with self._lock:
            return len(self._plugins)

    def sources(self) -> list[str]:
        with self._lock:
            return [p.source for p in self._plugins]

    def load_plugin(self, module: ModuleType, source: str, mode: ConnectMode) -> None:
        key = os.path.normpath(source).casefold()
        with self._lock:
            if any(os.path.normpath(p.source).casefold() == key for p in self._plugins):
                logger.debug("Plugin source %s already registered", source)
                return
            name = getattr(module, "__plugin_name__", None) or module.__name__
            plugin = LoadedPlugin(name=name, source=source, mode=mode, module=module)
            self._plugins.append(plugin)

        if self._on_loaded is not None:
            self._on_loaded(plugin)


class InMemoryPluginHost:
    """Minimal host exposing an :class:`InMemoryPluginRegistry`."""

    def __init__(self, on_loaded: Callable[[LoadedPlugin], None] | None = None) -> None:
        self._plugins = InMemoryPluginRegistry(on_loaded)

    @property
    def plugins(self) -> InMemoryPluginRegistry:
        return self._plugins
