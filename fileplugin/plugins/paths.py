"""Ordered, de-duplicated set of plugin root directories."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, overload

if TYPE_CHECKING:
    from fileplugin.config.models import ProviderConfig


class PluginPathSet(Sequence[str]):
    """Immutable list of absolute root directories.

    Entries are made absolute and de-duplicated on ``os.path.normcase``,
    keeping the first occurrence. Entries that do not exist are kept but
    skipped by :meth:`existing`, so a directory created later is picked up on
    the next activation.
    """

    def __init__(self, paths: Iterable[str | os.PathLike[str]] = ()) -> None:
        seen: set[str] = set()
        ordered: list[str] = []
        for raw in paths:
            raw = os.fspath(raw)
            if not raw.strip():
                continue
            path = os.path.abspath(os.path.expanduser(raw))
            key = os.path.normcase(path)
            if key in seen:
                continue
            seen.add(key)
            ordered.append(path)
        self._paths: tuple[str, ...] = tuple(ordered)

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig,
        environ: Mapping[str, str] | None = None,
    ) -> PluginPathSet:
        """Build from configured paths plus entries of the ``path_env`` variable."""
        env = os.environ if environ is None else environ
        extra = env.get(config.path_env, "") if config.path_env else ""
        return cls([*config.plugin_paths, *extra.split(os.pathsep)])

    def existing(self) -> Iterator[str]:
        """Yield only the roots that currently exist as directories."""
        for path in self._paths:
            if os.path.isdir(path):
                yield path

    @overload
    def __getitem__(self, index: int) -> str: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[str]: ...

    def __getitem__(self, index):
        return self._paths[index]

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PluginPathSet):
            return self._paths == other._paths
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._paths)

    def __str__(self) -> str:
        return ",".join(self._paths)

    def __repr__(self) -> str:
        return f"PluginPathSet({list(self._paths)!r})"
