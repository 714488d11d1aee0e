"""Tests for fileplugin.host: the in-memory reference host."""

from __future__ import annotations

import threading
import types

from fileplugin.host import InMemoryPluginHost, InMemoryPluginRegistry
from fileplugin.interfaces.host import ConnectMode


def _module(name: str, **attrs) -> types.ModuleType:
    module = types.ModuleType(name)
    for key, value in attrs.items():
        setattr(module, key, value)
    return module


class TestInMemoryPluginRegistry:
    def test_records_plugin(self):
        registry = InMemoryPluginRegistry()
        registry.load_plugin(_module("alpha"), "/plugins/alpha.py", ConnectMode.startup)

        [plugin] = list(registry)
        assert plugin.name == "alpha"
        assert plugin.source == "/plugins/alpha.py"
        assert plugin.mode is ConnectMode.startup

    def test_declared_plugin_name_used(self):
        registry = InMemoryPluginRegistry()
        registry.load_plugin(_module("_alias", __plugin_name__="pretty"), "/p/x.py", ConnectMode.startup)
        assert next(iter(registry)).name == "pretty"

    def test_duplicate_source_ignored_case_insensitively(self):
        registry = InMemoryPluginRegistry()
        registry.load_plugin(_module("a"), "/Plugins/A.py", ConnectMode.startup)
        registry.load_plugin(_module("a2"), "/plugins/a.py", ConnectMode.after_startup)

        assert len(registry) == 1
        assert registry.sources() == ["/Plugins/A.py"]

    def test_on_loaded_callback_only_for_new_entries(self):
        seen = []
        registry = InMemoryPluginRegistry(on_loaded=seen.append)
        registry.load_plugin(_module("a"), "/p/a.py", ConnectMode.startup)
        registry.load_plugin(_module("a"), "/p/a.py", ConnectMode.startup)
        assert [p.source for p in seen] == ["/p/a.py"]

    def test_concurrent_registration_of_same_source(self):
        registry = InMemoryPluginRegistry()
        barrier = threading.Barrier(8)

        def register():
            barrier.wait()
            registry.load_plugin(_module("race"), "/p/race.py", ConnectMode.after_startup)

        threads = [threading.Thread(target=register) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == 1

    def test_iteration_is_a_snapshot(self):
        registry = InMemoryPluginRegistry()
        registry.load_plugin(_module("a"), "/p/a.py", ConnectMode.startup)
        it = iter(registry)
        registry.load_plugin(_module("b"), "/p/b.py", ConnectMode.startup)
        assert [p.source for p in it] == ["/p/a.py"]


def test_host_exposes_registry():
    host = InMemoryPluginHost()
    assert isinstance(host.plugins, InMemoryPluginRegistry)
    assert len(host.plugins) == 0
