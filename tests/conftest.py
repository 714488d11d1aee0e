"""Shared test fixtures for fileplugin."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from fileplugin.config.models import ProviderConfig
from fileplugin.host import InMemoryPluginHost


def _write_plugin(
    directory: Path,
    filename: str,
    *,
    version: str | None = None,
    plugin_name: str | None = None,
    body: str = "",
) -> Path:
    """Write a small plugin module and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    lines = []
    if plugin_name is not None:
        lines.append(f"__plugin_name__ = {plugin_name!r}")
    if version is not None:
        lines.append(f"__version__ = {version!r}")
    if body:
        lines.append(body)
    path = directory / filename
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture(autouse=True)
def _unload_tmp_modules(tmp_path_factory):
    """Drop modules executed from temp directories so tests stay independent."""
    yield
    base = str(tmp_path_factory.getbasetemp())
    for name, module in list(sys.modules.items()):
        origin = getattr(getattr(module, "__spec__", None), "origin", None) or ""
        if origin.startswith(base):
            del sys.modules[name]


@pytest.fixture(autouse=True)
def _restore_fileplugin_logger():
    """The CLI installs its own handler; undo that after each test."""
    logger = logging.getLogger("fileplugin")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def make_plugin():
    """Factory writing plugin modules: make_plugin(dir, "name.py", version=...)."""
    return _write_plugin


@pytest.fixture
def host():
    return InMemoryPluginHost()


@pytest.fixture
def plugin_dir(tmp_path):
    d = tmp_path / "plugins"
    d.mkdir()
    return d


@pytest.fixture
def provider_config(plugin_dir):
    return ProviderConfig(plugin_paths=[str(plugin_dir)], path_env="")
