"""File-system plugin provider: scan, watch, and resolve dependencies."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from types import ModuleType

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from fileplugin.config.models import ProviderConfig
from fileplugin.interfaces.host import (
    ConnectMode,
    DeactivationResult,
    DisconnectMode,
    PluginHost,
)
from fileplugin.interfaces.provider import PluginProvider
from fileplugin.plugins.components import (
    ComponentIdentity,
    ComponentLoaderProtocol,
    ModuleComponentLoader,
)
from fileplugin.plugins.extensions import LIBRARY_EXTENSIONS
from fileplugin.plugins.loader import PluginLoader
from fileplugin.plugins.monitor import ChangeMonitor
from fileplugin.plugins.paths import PluginPathSet
from fileplugin.plugins.resolver import DependencyNotFoundError, DependencyResolver
from fileplugin.plugins.scanner import DirectoryScanner

logger = logging.getLogger(__name__)


class ProviderState(str, Enum):
    """Lifecycle of a provider."""

    unconnected = "unconnected"
    connected = "connected"
    disconnected = "disconnected"


class FilePluginProvider:
    """Loads plugins from directories and keeps watching them for new files.

    The provider must stay resident for the lifetime of its host: a
    user-initiated deactivation is refused with
    :attr:`DeactivationResult.unsupported`. ``parent_provider`` is only
    consulted when a dependency cannot be found locally.
    """

    def __init__(
        self,
        host: PluginHost,
        config: ProviderConfig | None = None,
        components: ComponentLoaderProtocol | None = None,
        environ: Mapping[str, str] | None = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        if host is None:
            raise ValueError("host must be provided")
        self._host = host
        self._config = config or ProviderConfig()
        self._components = components or ModuleComponentLoader()
        self._environ = environ
        self._observer_factory = observer_factory
        self.parent_provider: PluginProvider | None = None

        self._state = ProviderState.unconnected
        self._paths = PluginPathSet()
        self._extensions: tuple[str, ...] = ()
        self._loader: PluginLoader | None = None
        self._scanner: DirectoryScanner | None = None
        self._resolver: DependencyResolver | None = None
        self._monitor: ChangeMonitor | None = None

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def paths(self) -> PluginPathSet:
        """Root directories searched by this provider (empty until activated)."""
        return self._paths

    @property
    def extensions(self) -> tuple[str, ...]:
        return self._extensions

    @property
    def monitor(self) -> ChangeMonitor | None:
        return self._monitor

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def on_activate(self, mode: ConnectMode) -> bool:
        """Initialize paths and collaborators. Returns False if already connected."""
        if self._state is ProviderState.connected:
            logger.warning("Provider %s is already connected; ignoring activation", type(self).__name__)
            return False

        self._paths = PluginPathSet.from_config(self._config, self._environ)
        self._extensions = tuple(self._config.extensions or LIBRARY_EXTENSIONS)
        self._loader = PluginLoader(self._host, self._components, self._extensions)
        self._scanner = DirectoryScanner(self._loader)
        self._resolver = DependencyResolver(self._paths, self._components, self._extensions)
        self._monitor = ChangeMonitor(self._on_file_changed, self._observer_factory)
        self._state = ProviderState.connected
        logger.debug("Provider connected (%s) with paths %s", mode.value, self._paths)
        return True

    def on_deactivate(self, mode: DisconnectMode) -> DeactivationResult:
        """Release watches, unless the user asked to close the provider."""
        if mode is DisconnectMode.user_closed:
            logger.warning("Plugin provider %s can't be unloaded", type(self).__name__)
            return DeactivationResult.unsupported

        if self._monitor is not None:
            self._monitor.stop()
            self._monitor = None
        if self._state is ProviderState.connected:
            self._state = ProviderState.disconnected
        logger.debug("Provider disconnected (%s)", mode.value)
        return DeactivationResult.success

    def _require_connected(self) -> None:
        if self._state is not ProviderState.connected:
            raise RuntimeError(f"Provider {type(self).__name__} is not connected")

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def run_discovery(self) -> list[str]:
        """Scan every root once, then start watching for changes.

        Returns the sources activated by the scan.
        """
        self._require_connected()
        loaded = self._scanner.scan(self._paths)
        self._monitor.start(self._paths, self._extensions)
        return loaded

    def _on_file_changed(self, file_path: str) -> None:
        self._loader.load(file_path, ConnectMode.after_startup)

    # ------------------------------------------------------------------
    # Dependency resolution
    # ------------------------------------------------------------------

    def resolve_dependency(self, identity: str) -> ModuleType:
        """Find and load the component declaring exactly ``identity``.

        Falls back to ``parent_provider`` when nothing matches locally.
        Raises ValueError for an empty identity and DependencyNotFoundError
        when the whole chain misses.
        """
        target = ComponentIdentity.parse(identity)
        self._require_connected()

        module = self._resolver.resolve(target)
        if module is not None:
            return module

        logger.warning(
            "The provider %s is unable to locate the dependency %s in the path %s",
            type(self).__name__,
            target.full_name,
            self._paths,
        )
        if self.parent_provider is None:
            raise DependencyNotFoundError(target.full_name, list(self._paths))
        return self.parent_provider.resolve_dependency(identity)
