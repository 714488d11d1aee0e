"""Reading declared identities from plugin files and loading them as modules."""

from __future__ import annotations

import ast
import hashlib
import importlib.util
import logging
import os
import re
import sys
from importlib.machinery import EXTENSION_SUFFIXES
from types import ModuleType
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

# Leading bytes of native shared libraries: ELF, PE, Mach-O (32/64, both byte orders, fat)
_NATIVE_MAGIC = (
    b"\x7fELF",
    b"MZ",
    b"\xfe\xed\xfa\xce",
    b"\xfe\xed\xfa\xcf",
    b"\xce\xfa\xed\xfe",
    b"\xcf\xfa\xed\xfe",
    b"\xca\xfe\xba\xbe",
)

_NAME_ATTR = "__plugin_name__"
_VERSION_ATTR = "__version__"


class ComponentError(Exception):
    """Base class for per-file component failures."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class ComponentFormatError(ComponentError):
    """The file is not a component this loader understands."""


class ComponentLoadError(ComponentError):
    """The file exists but could not be read (missing, locked, no permission)."""


class ComponentExitError(ComponentError):
    """The module called ``sys.exit`` (or raised SystemExit) while executing."""

    def __init__(self, path: str, code: object):
        self.code = code
        super().__init__(path, f"component exited during import (code {code!r})")


class ComponentIdentity(BaseModel):
    """Full, version-qualified name a component advertises about itself."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @property
    def full_name(self) -> str:
        if self.version is None:
            return self.name
        return f"{self.name}=={self.version}"

    @classmethod
    def parse(cls, text: str) -> ComponentIdentity:
        """Parse ``name`` or ``name==version``.

        Raises ValueError for empty input or an empty name.
        """
        if text is None or not text.strip():
            raise ValueError("dependency identity cannot be empty")
        name, sep, version = text.partition("==")
        if not name.strip():
            raise ValueError(f"dependency identity has no name: {text!r}")
        return cls(name=name, version=version if sep else None)

    def __str__(self) -> str:
        return self.full_name


@runtime_checkable
class ComponentLoaderProtocol(Protocol):
    """Mechanism that turns a file into an executable module."""

    def read_identity(self, path: str) -> ComponentIdentity: ...

    def load(self, path: str, module_name: str | None = None) -> ModuleType: ...


def _is_extension_module(path: str) -> bool:
    name = os.path.basename(path).casefold()
    return any(name.endswith(suffix.casefold()) for suffix in EXTENSION_SUFFIXES)


def _module_stem(path: str) -> str:
    return os.path.basename(path).split(".", 1)[0]


def _same_file(a: str, b: str) -> bool:
    return os.path.normcase(os.path.abspath(a)) == os.path.normcase(os.path.abspath(b))


def _string_constant(node: ast.AST) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


class ModuleComponentLoader:
    """Loads Python source and extension modules straight from their files.

    Identities are read without executing anything: source files are parsed
    with :mod:`ast`, extension modules are named after their file and must
    carry a native binary header.
    """

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def read_identity(self, path: str) -> ComponentIdentity:
        path = os.fspath(path)
        if _is_extension_module(path):
            return self._read_extension_identity(path)
        return self._read_source_identity(path)

    def _read_source_identity(self, path: str) -> ComponentIdentity:
        try:
            with open(path, "rb") as f:
                source = f.read()
        except OSError as exc:
            raise ComponentLoadError(path, f"cannot read component ({exc.strerror})") from exc

        try:
            tree = ast.parse(source, filename=path)
        except (SyntaxError, ValueError) as exc:
            raise ComponentFormatError(path, "not a valid Python module") from exc

        found: dict[str, str] = {}
        for node in tree.body:
            if isinstance(node, ast.Assign):
                targets, value = node.targets, node.value
            elif isinstance(node, ast.AnnAssign) and node.value is not None:
                targets, value = [node.target], node.value
            else:
                continue
            for target in targets:
                if isinstance(target, ast.Name) and target.id in (_NAME_ATTR, _VERSION_ATTR):
                    literal = _string_constant(value)
                    if literal is None:
                        raise ComponentFormatError(path, f"{target.id} must be a string literal")
                    found[target.id] = literal

        name = found.get(_NAME_ATTR) or _module_stem(path)
        try:
            return ComponentIdentity(name=name, version=found.get(_VERSION_ATTR))
        except ValueError as exc:
            raise ComponentFormatError(path, "component declares an empty name") from exc

    def _read_extension_identity(self, path: str) -> ComponentIdentity:
        try:
            with open(path, "rb") as f:
                header = f.read(4)
        except OSError as exc:
            raise ComponentLoadError(path, f"cannot read component ({exc.strerror})") from exc

        if not header.startswith(_NATIVE_MAGIC):
            raise ComponentFormatError(path, "not a native extension module")
        name = _module_stem(path)
        if not name.isidentifier():
            raise ComponentFormatError(path, f"invalid extension module name '{name}'")
        return ComponentIdentity(name=name)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _default_module_name(self, path: str) -> str:
        stem = _module_stem(path)
        if _is_extension_module(path):
            # PyInit_<name> must match the module name
            return stem
        digest = hashlib.sha1(os.path.abspath(path).encode("utf-8")).hexdigest()[:8]
        safe = re.sub(r"\W", "_", stem) or "plugin"
        return f"_fileplugin_{safe}_{digest}"

    def load(self, path: str, module_name: str | None = None) -> ModuleType:
        """Execute the file as a module and return it.

        The module is registered in ``sys.modules`` while it executes. If
        execution raises, whatever held the name before is put back. An
        explicit ``module_name`` already bound to a module from another file
        is refused. SystemExit raised by the module surfaces as
        :class:`ComponentExitError`.
        """
        path = os.fspath(path)
        name = module_name or self._default_module_name(path)

        previous = sys.modules.get(name)
        if module_name and previous is not None:
            origin = getattr(getattr(previous, "__spec__", None), "origin", None)
            if origin and _same_file(origin, path):
                return previous
            raise ComponentFormatError(path, f"module name '{name}' is already taken by {origin or 'a built-in module'}")

        if not os.path.isfile(path):
            raise ComponentLoadError(path, "component file not found")

        spec = importlib.util.spec_from_file_location(name, path)
        if spec is None or spec.loader is None:
            raise ComponentFormatError(path, "no import loader for this file type")

        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException as exc:
            if sys.modules.get(name) is module:
                if previous is None:
                    del sys.modules[name]
                else:
                    sys.modules[name] = previous
            if isinstance(exc, SystemExit):
                raise ComponentExitError(path, exc.code) from exc
            raise
        logger.debug("Loaded module %s from %s", name, path)
        return module
