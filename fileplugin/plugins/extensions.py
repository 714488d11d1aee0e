"""Recognized plugin file extensions for the running interpreter."""

from __future__ import annotations

import os
from collections.abc import Iterable
from importlib.machinery import EXTENSION_SUFFIXES, SOURCE_SUFFIXES

# Source modules first, then the platform's native extension-module suffixes
LIBRARY_EXTENSIONS: tuple[str, ...] = tuple(dict.fromkeys(SOURCE_SUFFIXES + EXTENSION_SUFFIXES))


def check_file_extension(path: str | os.PathLike[str], extensions: Iterable[str] = LIBRARY_EXTENSIONS) -> bool:
    """Return True if the file name ends with one of the recognized extensions.

    Comparison is case-insensitive. Only the file name is inspected, so a
    directory called ``foo.py`` elsewhere in the path does not count.
    """
    name = os.path.basename(os.fspath(path)).casefold()
    return any(name.endswith(ext.casefold()) and len(name) > len(ext) for ext in extensions)
