"""Per-file facts produced by the source scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..models import Location

# Module marker for require()/import() calls whose target is computed at runtime.
DYNAMIC_MODULE = "<dynamic>"

WILDCARD = "*"
DEFAULT_EXPORT = "default"


class ImportKind(str, Enum):
    NAMED = "named"
    DEFAULT = "default"
    NAMESPACE = "namespace"


@dataclass(frozen=True)
class ImportBinding:
    """One imported symbol.

    Attributes:
        module: Specifier as written (package, scoped package, subpath, relative path)
        export_name: Name in the source module, ``"*"`` for namespace, ``"default"`` for default
        local_name: Binding introduced in this file (``"*"`` for side-effect imports)
        kind: Named, default or namespace
        location: Where the binding appears
    """

    module: str
    export_name: str
    local_name: str
    kind: ImportKind
    location: Location

    @property
    def is_side_effect(self) -> bool:
        return (
            self.kind is ImportKind.NAMESPACE
            and self.export_name == WILDCARD
            and self.local_name == WILDCARD
        )


@dataclass(frozen=True)
class ReExportBinding:
    """A re-export visible to importers of the declaring file.

    ``export_name`` is ``"*"`` for ``export * from``; ``source_export_name``
    is ``"*"`` for both ``export * from`` and ``export * as ns from``.
    """

    export_name: str
    source_module: str
    source_export_name: str


@dataclass(frozen=True)
class UncertainImport:
    """A require()/import() call whose target cannot be determined statically."""

    kind: str
    expression: str
    location: Location
    module: str = DYNAMIC_MODULE


@dataclass(frozen=True)
class FileScan:
    """Everything the analysis layer needs to know about one source file."""

    path: str
    imports: tuple[ImportBinding, ...] = ()
    identifier_usage: dict[str, int] = field(default_factory=dict)
    namespace_usage: dict[str, dict[str, int]] = field(default_factory=dict)
    reexports: tuple[ReExportBinding, ...] = ()
    uncertain_imports: tuple[UncertainImport, ...] = ()
    has_parse_error: bool = False

    def direct_usage(self, local_name: str) -> int:
        """Identifier uses of ``local_name`` that are not member/subscript objects."""
        total = self.identifier_usage.get(local_name, 0)
        via_members = sum(self.namespace_usage.get(local_name, {}).values())
        return max(0, total - via_members)


@dataclass
class ScanResult:
    """All scanned files, sorted by path, plus scan-level warnings."""

    files: list[FileScan] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def uncertain_imports(self) -> list[UncertainImport]:
        return [item for f in self.files for item in f.uncertain_imports]

    def file(self, path: str) -> FileScan | None:
        for f in self.files:
            if f.path == path:
                return f
        return None
