"""Locating, reading and validating fileplugin.yaml."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator, Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import FilePluginConfig

CONFIG_FILENAME = "fileplugin.yaml"

_ENV_REF = re.compile(r"\$\{(\w+)\}")


def config_search_path(cli_path: str | None = None) -> Iterator[Path]:
    """Yield the files ``load_config`` reads, most specific first.

    An explicit path is the only candidate and must exist.
    """
    if cli_path:
        path = Path(cli_path).expanduser()
        if not path.is_file():
            raise ValueError(f"Config file not found: {path}")
        yield path
        return
    yield Path.cwd() / CONFIG_FILENAME
    yield Path.home() / ".fileplugin" / "config.yaml"


def load_config(
    cli_path: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> FilePluginConfig:
    """Load the first non-empty config file, or the defaults if there is none.

    Relative ``plugin_paths`` are anchored at the directory of the file that
    declares them, so a user-global config works from any working directory.
    """
    env = os.environ if environ is None else environ
    for path in config_search_path(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        try:
            config = FilePluginConfig.model_validate(_expand_env_vars(raw, env))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        return _anchor_plugin_paths(config, path.parent)

    return FilePluginConfig()


def _read_yaml(path: Path) -> dict | None:
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: top level must be a mapping, got {type(raw).__name__}")
    return raw


def _anchor_plugin_paths(config: FilePluginConfig, base: Path) -> FilePluginConfig:
    anchored = []
    for entry in config.provider.plugin_paths:
        # blanks stay blank; PluginPathSet skips them
        if entry.strip():
            entry = os.path.join(base.resolve(), os.path.expanduser(entry))
        anchored.append(entry)
    provider = config.provider.model_copy(update={"plugin_paths": anchored})
    return config.model_copy(update={"provider": provider})


def _expand_env_vars(obj: object, environ: Mapping[str, str] | None = None) -> object:
    """Recursively expand ${VAR} references in strings. Unset variables become ''."""
    env = os.environ if environ is None else environ
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: env.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v, env) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v, env) for v in obj]
    return obj


# Written by `fileplugin config init`
DEFAULT_CONFIG_TEMPLATE = """\
# fileplugin.yaml

provider:
  # Directories scanned at startup and watched afterwards, in search order.
  # Relative entries are resolved against the directory of this file.
  plugin_paths:
    - "plugins"
  # Extra directories from this env var (os.pathsep separated)
  path_env: "FILEPLUGIN_PATH"
  # Restrict to some of the interpreter's module suffixes (.py, .so, .pyd, ...)
  # extensions: [".py"]

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
