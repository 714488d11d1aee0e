"""Host-side contract consumed by plugin providers."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from types import ModuleType
from typing import Protocol, runtime_checkable


class ConnectMode(str, Enum):
    """Why a plugin is being connected."""

    startup = "startup"
    after_startup = "after_startup"


class DisconnectMode(str, Enum):
    """Why a plugin is being disconnected."""

    user_closed = "user_closed"
    host_shutdown = "host_shutdown"
    reconfigure = "reconfigure"


class DeactivationResult(str, Enum):
    """Outcome of a provider deactivation request.

    ``unsupported`` is returned for transitions the provider refuses, so the
    host can branch on it without exception handling.
    """

    success = "success"
    unsupported = "unsupported"


@runtime_checkable
class PluginDescription(Protocol):
    """A component already registered with the host."""

    @property
    def source(self) -> str: ...


@runtime_checkable
class PluginRegistry(Protocol):
    """The host's table of active components."""

    def __iter__(self) -> Iterator[PluginDescription]: ...

    def load_plugin(self, module: ModuleType, source: str, mode: ConnectMode) -> None: ...


@runtime_checkable
class PluginHost(Protocol):
    """Anything exposing a plugin registry."""

    @property
    def plugins(self) -> PluginRegistry: ...
