from importlib.machinery import EXTENSION_SUFFIXES, SOURCE_SUFFIXES
from typing import Literal

from pydantic import BaseModel, Field, field_validator

_IMPORTABLE_SUFFIXES = tuple(s.casefold() for s in SOURCE_SUFFIXES + EXTENSION_SUFFIXES)


class ProviderConfig(BaseModel):
    plugin_paths: list[str] = ["plugins"]
    path_env: str = "FILEPLUGIN_PATH"
    extensions: list[str] | None = None

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str] | None) -> list[str] | None:
        """Give every extension a leading dot and drop blanks and repeats.

        Extensions can only narrow what the interpreter imports: each one must
        end with a source or extension-module suffix.
        """
        if v is None:
            return None
        normalized: list[str] = []
        for ext in (e.strip() for e in v):
            if not ext:
                continue
            if not ext.startswith("."):
                ext = "." + ext
            if not ext.casefold().endswith(_IMPORTABLE_SUFFIXES):
                raise ValueError(
                    f"extension '{ext}' is not importable; expected one ending in {', '.join(_IMPORTABLE_SUFFIXES)}"
                )
            if ext not in normalized:
                normalized.append(ext)
        if not normalized:
            raise ValueError("extensions cannot be empty; omit it to use the platform defaults")
        return normalized


class FilePluginConfig(BaseModel):
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
