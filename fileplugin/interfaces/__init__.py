"""Contracts between plugin providers and their host."""

from fileplugin.interfaces.host import (
    ConnectMode,
    DeactivationResult,
    DisconnectMode,
    PluginDescription,
    PluginHost,
    PluginRegistry,
)
from fileplugin.interfaces.provider import PluginProvider

__all__ = [
    "ConnectMode",
    "DeactivationResult",
    "DisconnectMode",
    "PluginDescription",
    "PluginHost",
    "PluginProvider",
    "PluginRegistry",
]
