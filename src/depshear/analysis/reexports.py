"""Re-export attribution.

Traces an import of a local module through ``export ... from`` hops until it
lands on an export of the dependency being analysed. The file graph may
contain cycles; each (file, export name) pair is visited at most once per
traversal and a repeat records a warning instead of recursing.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Optional

from ..logging_config import get_logger
from ..scanning import DEFAULT_EXPORT, WILDCARD, FileScan, ImportBinding, ImportKind, ReExportBinding, ScanResult
from .dependencies import matches_dependency

logger = get_logger(__name__)

PROVENANCE_SEPARATOR = " -> "

LOCAL_MODULE_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs")


@dataclass(frozen=True)
class ResolvedAttribution:
    """Dependency export an import ultimately refers to."""

    module: str
    export_name: str
    provenance: str


@dataclass(frozen=True)
class _ExportOrigin:
    module: str
    export_name: str
    trail: tuple[str, ...]


def normalize_module_path(path: str) -> str:
    """Clean a repo-relative path to posix form (``a/./b/../c`` -> ``a/c``)."""
    return posixpath.normpath(path.replace("\\", "/"))


def is_local_module_specifier(module: str) -> bool:
    return module.startswith(".")


def local_module_candidates(path: str) -> list[str]:
    """Files a relative specifier may refer to, in probe order.

    The literal path first, then the path without its extension, then each
    known extension appended to the stem and to ``<stem>/index``.
    """
    normalized = normalize_module_path(path)
    base, ext = posixpath.splitext(normalized)
    candidates = [normalized]
    if ext:
        candidates.append(base)
    for extension in LOCAL_MODULE_EXTENSIONS:
        candidates.append(base + extension)
        candidates.append(posixpath.join(base, "index" + extension))
    return list(dict.fromkeys(normalize_module_path(c) for c in candidates))


def select_reexport_candidates(bindings: tuple[ReExportBinding, ...], requested: str) -> list[ReExportBinding]:
    """Exact-name re-exports in declaration order, else the wildcard ones."""
    exact = [binding for binding in bindings if binding.export_name == requested]
    if exact:
        return exact
    return [binding for binding in bindings if binding.export_name == WILDCARD]


def forwarded_export_name(source_export: str, requested: str) -> str:
    """Name requested from the next hop; wildcard re-exports keep names unchanged."""
    return requested if source_export == WILDCARD else source_export


class ReExportResolver:
    """Resolves local imports to dependency exports across re-export chains.

    One instance serves one analysis pass over a fixed ScanResult. Local
    module lookups are memoised per (importer, specifier), including misses.
    """

    def __init__(self, scan: ScanResult):
        self._files: dict[str, FileScan] = {normalize_module_path(f.path): f for f in scan.files}
        self._module_cache: dict[tuple[str, str], Optional[str]] = {}
        self._warnings: set[str] = set()
        self.cache_misses = 0

    @property
    def warnings(self) -> list[str]:
        """Cycle warnings recorded so far, sorted."""
        return sorted(self._warnings)

    def resolve_local_module(self, importer: str, module: str) -> Optional[str]:
        """Repo-relative path of the scanned file ``module`` refers to from ``importer``."""
        importer = normalize_module_path(importer)
        key = (importer, module)
        if key in self._module_cache:
            return self._module_cache[key]

        self.cache_misses += 1
        target = posixpath.join(posixpath.dirname(importer), module)
        resolved = next((c for c in local_module_candidates(target) if c in self._files), None)
        self._module_cache[key] = resolved
        if resolved is None:
            logger.debug(f"Local module {module!r} from {importer} did not resolve")
        return resolved

    def resolve_import_attribution(
        self, importer: str, binding: ImportBinding, dependency: str
    ) -> Optional[ResolvedAttribution]:
        """
        Trace ``binding`` through local re-exports to an export of ``dependency``.

        Only named and default imports of relative specifiers are attributed.

        Args:
            importer: Repo-relative path of the importing file
            binding: Import binding declared in ``importer``
            dependency: Package under analysis

        Returns:
            The attribution, or None when the chain does not reach ``dependency``
        """
        if not is_local_module_specifier(binding.module):
            return None
        if binding.kind not in (ImportKind.NAMED, ImportKind.DEFAULT):
            return None

        start = self.resolve_local_module(importer, binding.module)
        if start is None:
            return None

        requested = DEFAULT_EXPORT if binding.kind is ImportKind.DEFAULT else binding.export_name
        importer = normalize_module_path(importer)
        origin = self._resolve_export_origin(importer, start, requested, dependency, frozenset(), ())
        if origin is None:
            return None

        hops = (importer, *origin.trail, f"{origin.module}#{origin.export_name}")
        return ResolvedAttribution(
            module=origin.module,
            export_name=origin.export_name,
            provenance=PROVENANCE_SEPARATOR.join(hops),
        )

    def _resolve_export_origin(
        self,
        importer: str,
        current: str,
        requested: str,
        dependency: str,
        visited: frozenset[str],
        trail: tuple[str, ...],
    ) -> Optional[_ExportOrigin]:
        key = f"{current}|{requested}"
        if key in visited:
            cycle = PROVENANCE_SEPARATOR.join((*trail, current))
            self._warnings.add(
                f're-export attribution cycle while resolving "{requested}" from {importer}: {cycle}'
            )
            return None

        file = self._files.get(current)
        if file is None:
            return None

        visited = visited | {key}
        for binding in select_reexport_candidates(file.reexports, requested):
            next_export = forwarded_export_name(binding.source_export_name, requested)
            if matches_dependency(binding.source_module, dependency):
                return _ExportOrigin(binding.source_module, next_export, (*trail, current))
            if not is_local_module_specifier(binding.source_module):
                continue
            next_file = self.resolve_local_module(current, binding.source_module)
            if next_file is None:
                continue
            origin = self._resolve_export_origin(
                importer, next_file, next_export, dependency, visited, (*trail, current)
            )
            if origin is not None:
                return origin
        return None
