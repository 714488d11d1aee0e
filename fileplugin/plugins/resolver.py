"""Locating a dependency by declared identity under the plugin roots."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from types import ModuleType

from fileplugin.plugins.components import (
    ComponentFormatError,
    ComponentIdentity,
    ComponentLoaderProtocol,
    ComponentLoadError,
    ModuleComponentLoader,
)
from fileplugin.plugins.extensions import LIBRARY_EXTENSIONS, check_file_extension
from fileplugin.plugins.paths import PluginPathSet

logger = logging.getLogger(__name__)


class DependencyNotFoundError(Exception):
    """Raised when no provider in the chain can locate a dependency."""

    def __init__(self, identity: str, searched_paths: Sequence[str] = ()):
        self.identity = identity
        self.searched_paths = list(searched_paths)
        msg = f"Unable to locate dependency '{identity}'"
        if self.searched_paths:
            msg += f" in the path {','.join(self.searched_paths)}"
        super().__init__(msg)


class DependencyResolver:
    """Searches the plugin roots recursively for a component by exact identity.

    Candidates are visited root by root in configured order, then in
    lexicographic path order, and the first exact match wins.
    """

    def __init__(
        self,
        paths: PluginPathSet,
        components: ComponentLoaderProtocol | None = None,
        extensions: Iterable[str] = LIBRARY_EXTENSIONS,
    ) -> None:
        self._paths = paths
        self._components = components or ModuleComponentLoader()
        self._extensions = tuple(extensions)

    @property
    def paths(self) -> PluginPathSet:
        return self._paths

    def candidates(self) -> Iterator[str]:
        """Yield every recognized file under the existing roots, recursively."""
        for root in self._paths.existing():
            for dirpath, dirnames, filenames in os.walk(root):
                dirnames.sort()
                for filename in sorted(filenames):
                    path = os.path.join(dirpath, filename)
                    if check_file_extension(path, self._extensions):
                        yield path

    def locate(self, identity: ComponentIdentity) -> Iterator[str]:
        """Yield candidate files whose declared identity equals ``identity``."""
        target = identity.full_name
        for path in self.candidates():
            try:
                declared = self._components.read_identity(path)
            except (ComponentFormatError, ComponentLoadError):
                continue
            except Exception as exc:
                exc.add_note(f"Library: {path}")
                logger.error("Cannot inspect %s: %s", path, exc, exc_info=exc, extra={"library": path})
                continue
            if declared.full_name == target:
                yield path

    def resolve(self, identity: ComponentIdentity) -> ModuleType | None:
        """Load and return the first component matching ``identity``, or None."""
        for path in self.locate(identity):
            try:
                return self._components.load(path, module_name=identity.name)
            except (ComponentFormatError, ComponentLoadError):
                continue
            except Exception as exc:
                exc.add_note(f"Library: {path}")
                logger.error("Cannot load %s: %s", path, exc, exc_info=exc, extra={"library": path})
        return None
