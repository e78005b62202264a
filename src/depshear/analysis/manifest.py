"""Dependency package.json decoding.

The ``exports`` field is decoded into a small closed union
(``ExportsString | ExportsArray | ExportsObject``) so the resolver can
dispatch on node type instead of probing raw JSON values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import ManifestError
from .dependencies import PACKAGE_MANIFEST

UNREADABLE_REASON = "unreadable"
INVALID_JSON_REASON = "invalid JSON"


@dataclass(frozen=True)
class ExportsString:
    value: str


@dataclass(frozen=True)
class ExportsArray:
    """Ordered fallbacks; unsupported JSON items decode to None."""

    items: tuple[Optional["ExportsNode"], ...]


@dataclass(frozen=True)
class ExportsObject:
    """Keyed exports entry; values of unsupported JSON types decode to None."""

    entries: tuple[tuple[str, Optional["ExportsNode"]], ...]

    def keys(self) -> list[str]:
        return [key for key, _ in self.entries]

    def get(self, key: str) -> Optional["ExportsNode"]:
        for entry_key, value in self.entries:
            if entry_key == key:
                return value
        return None

    def __contains__(self, key: str) -> bool:
        return any(entry_key == key for entry_key, _ in self.entries)


ExportsNode = Union[ExportsString, ExportsArray, ExportsObject]


def decode_exports(raw: Any) -> Optional[ExportsNode]:
    """Decode a JSON ``exports`` value; None for null, numbers and booleans."""
    if isinstance(raw, str):
        return ExportsString(raw)
    if isinstance(raw, list):
        return ExportsArray(tuple(decode_exports(item) for item in raw))
    if isinstance(raw, dict):
        return ExportsObject(tuple((str(key), decode_exports(value)) for key, value in raw.items()))
    return None


@dataclass
class PackageManifest:
    """The package.json fields depshear reads."""

    name: str = ""
    version: str = ""
    main: str = ""
    module: str = ""
    types: str = ""
    typings: str = ""
    exports: Optional[ExportsNode] = None
    has_exports: bool = False
    gypfile: bool = False
    scripts: dict[str, str] = field(default_factory=dict)
    dependencies: dict[str, str] = field(default_factory=dict)
    optional_dependencies: dict[str, str] = field(default_factory=dict)

    @property
    def legacy_entrypoints(self) -> list[str]:
        """Non-blank ``main``/``module``/``types``/``typings`` values, in that order."""
        return [value.strip() for value in (self.main, self.module, self.types, self.typings) if value.strip()]

    @property
    def dependency_names(self) -> list[str]:
        return sorted(set(self.dependencies) | set(self.optional_dependencies))


def _str_field(data: dict, key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _str_map(data: dict, key: str) -> dict[str, str]:
    value = data.get(key)
    if not isinstance(value, dict):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


def parse_manifest(data: Any) -> PackageManifest:
    """Build a PackageManifest from decoded JSON; tolerant of wrong field types."""
    if not isinstance(data, dict):
        raise ValueError("package.json root is not an object")
    return PackageManifest(
        name=_str_field(data, "name"),
        version=_str_field(data, "version"),
        main=_str_field(data, "main"),
        module=_str_field(data, "module"),
        types=_str_field(data, "types"),
        typings=_str_field(data, "typings"),
        exports=decode_exports(data.get("exports")),
        has_exports=data.get("exports") is not None,
        gypfile=data.get("gypfile") is True,
        scripts=_str_map(data, "scripts"),
        dependencies=_str_map(data, "dependencies"),
        optional_dependencies=_str_map(data, "optionalDependencies"),
    )


def load_manifest(package_root: Path) -> PackageManifest:
    """Read ``<package_root>/package.json``.

    Raises:
        ManifestError: If the file is unreadable or not a JSON object
    """
    path = package_root / PACKAGE_MANIFEST
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(path, f"{UNREADABLE_REASON}: {e}")
    try:
        return parse_manifest(json.loads(raw))
    except ValueError as e:
        raise ManifestError(path, f"{INVALID_JSON_REASON}: {e}")


def manifest_warning(error: ManifestError) -> str:
    """Report warning text for a manifest that could not be loaded."""
    if error.reason.startswith(UNREADABLE_REASON):
        return f"unable to read {error.path}"
    return "failed to parse dependency package.json"
