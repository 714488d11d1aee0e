"""One-shot scan of plugin root directories at startup."""

from __future__ import annotations

import logging
from pathlib import Path

from fileplugin.interfaces.host import ConnectMode
from fileplugin.plugins.loader import PluginLoader
from fileplugin.plugins.paths import PluginPathSet

logger = logging.getLogger(__name__)


class DirectoryScanner:
    """Feeds every top-level file of each existing root into the loader.

    Filtering by extension is left to the loader, so unsupported files are
    still reported there.
    """

    def __init__(self, loader: PluginLoader) -> None:
        self._loader = loader

    def scan(self, paths: PluginPathSet) -> list[str]:
        """Scan each root once. Returns the sources that were activated."""
        loaded: list[str] = []
        for root in paths.existing():
            try:
                files = sorted(p for p in Path(root).iterdir() if p.is_file())
            except OSError as exc:
                logger.warning("Cannot list plugin directory %s: %s", root, exc)
                continue

            for file in files:
                if self._loader.load(str(file), ConnectMode.startup):
                    loaded.append(str(file))
        return loaded
