"""Provider-side contract exposed to the host and to child providers."""

from __future__ import annotations

from types import ModuleType
from typing import Protocol, runtime_checkable

from fileplugin.interfaces.host import ConnectMode, DeactivationResult, DisconnectMode


@runtime_checkable
class PluginProvider(Protocol):
    """A source of plugins that can also resolve dependencies.

    ``parent_provider`` is a plain back-reference used only to cascade
    ``resolve_dependency`` when the local search fails.
    """

    parent_provider: PluginProvider | None

    def on_activate(self, mode: ConnectMode) -> bool: ...

    def on_deactivate(self, mode: DisconnectMode) -> DeactivationResult: ...

    def run_discovery(self) -> list[str]: ...

    def resolve_dependency(self, identity: str) -> ModuleType: ...
