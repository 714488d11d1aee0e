"""Plugin discovery, loading and dependency resolution from the file system."""

from fileplugin.plugins.extensions import LIBRARY_EXTENSIONS, check_file_extension
from fileplugin.plugins.paths import PluginPathSet
from fileplugin.plugins.components import (
    ComponentError,
    ComponentExitError,
    ComponentFormatError,
    ComponentIdentity,
    ComponentLoaderProtocol,
    ComponentLoadError,
    ModuleComponentLoader,
)
from fileplugin.plugins.loader import PluginLoader
from fileplugin.plugins.scanner import DirectoryScanner
from fileplugin.plugins.monitor import ChangeMonitor, WatchHandle
from fileplugin.plugins.resolver import DependencyNotFoundError, DependencyResolver
from fileplugin.plugins.provider import FilePluginProvider, ProviderState

__all__ = [
    "LIBRARY_EXTENSIONS",
    "ChangeMonitor",
    "ComponentError",
    "ComponentExitError",
    "ComponentFormatError",
    "ComponentIdentity",
    "ComponentLoadError",
    "ComponentLoaderProtocol",
    "DependencyNotFoundError",
    "DependencyResolver",
    "DirectoryScanner",
    "FilePluginProvider",
    "ModuleComponentLoader",
    "PluginLoader",
    "PluginPathSet",
    "ProviderState",
    "WatchHandle",
    "check_file_extension",
]
