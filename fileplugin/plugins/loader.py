"""Loading a single plugin file into the host, at most once per source path."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from fileplugin.interfaces.host import ConnectMode, PluginHost
from fileplugin.plugins.components import ComponentLoaderProtocol, ModuleComponentLoader
from fileplugin.plugins.extensions import LIBRARY_EXTENSIONS, check_file_extension

logger = logging.getLogger(__name__)


def _source_key(path: str) -> str:
    return os.path.normpath(path).casefold()


class PluginLoader:
    """Hands plugin files to the host's activation entry point.

    Every file is an independent unit of failure: errors are logged with the
    offending path and never propagate to the caller.
    """

    def __init__(
        self,
        host: PluginHost,
        components: ComponentLoaderProtocol | None = None,
        extensions: Iterable[str] = LIBRARY_EXTENSIONS,
    ) -> None:
        self._host = host
        self._components = components or ModuleComponentLoader()
        self._extensions = tuple(extensions)

    def is_registered(self, file_path: str) -> bool:
        """True if the host already holds a plugin loaded from this file (case-insensitive)."""
        key = _source_key(file_path)
        for plugin in self._host.plugins:
            source = getattr(plugin, "source", None)
            if source and _source_key(source) == key:
                return True
        return False

    def load(self, file_path: str, mode: ConnectMode) -> bool:
        """Load ``file_path`` into the host. Returns True if it was activated."""
        if not check_file_extension(file_path, self._extensions):
            logger.info("Try to load file with unsupported extension. FilePath: %s", file_path)
            return False

        try:
            # Sources are unique on the file system; another provider may already own it
            if self.is_registered(file_path):
                return False
            module = self._components.load(file_path)
            self._host.plugins.load_plugin(module, file_path, mode)
        except (Exception, SystemExit) as exc:
            exc.add_note(f"Library: {file_path}")
            logger.error(
                "Failed to load plugin %s: %s",
                file_path,
                exc,
                exc_info=exc,
                extra={"library": file_path},
            )
            return False

        logger.info("Loaded plugin %s (%s)", file_path, mode.value)
        return True
