"""Usage aggregation: which dependency exports the repository actually uses."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from ..logging_config import get_logger
from ..models import ImportUse, SymbolRef, SymbolUsage
from ..scanning import DEFAULT_EXPORT, WILDCARD, FileScan, ImportBinding, ImportKind, ScanResult
from .dependencies import matches_dependency
from .reexports import ReExportResolver

logger = get_logger(__name__)

AMBIGUOUS_IMPORTS_WARNING = "default or namespace imports reduce export precision"
WILDCARD_SURFACE_WARNING = "dependency export surface includes wildcard re-exports"


def no_used_exports_warning(dependency: str) -> str:
    return f'no used exports found for dependency "{dependency}"'


@dataclass
class DependencyUsage:
    """Aggregated usage of one dependency across the scanned files.

    Attributes:
        used_exports: Export names referenced at least once
        counts: Reference count per export name
        used_imports: Imports with at least one use, sorted by (module, name)
        unused_imports: Imports never used and not also used elsewhere
        has_ambiguous_imports: A default/namespace value is used as a whole
        warnings: Usage warnings followed by sorted attribution cycle warnings
    """

    used_exports: set[str] = field(default_factory=set)
    counts: dict[str, int] = field(default_factory=dict)
    used_imports: list[ImportUse] = field(default_factory=list)
    unused_imports: list[ImportUse] = field(default_factory=list)
    has_ambiguous_imports: bool = False
    warnings: list[str] = field(default_factory=list)

    def top_symbols(self, limit: int = 5) -> list[SymbolUsage]:
        """Most used exports, count descending then name ascending."""
        ranked = sorted(self.counts.items(), key=lambda item: (-item[1], item[0]))
        return [SymbolUsage(name=name, count=count) for name, count in ranked[:limit]]

    def unused_exports(self, dependency: str, surface: set[str]) -> list[SymbolRef]:
        return [SymbolRef(name=name, module=dependency) for name in sorted(surface - self.used_exports)]


def is_ambiguous_import(binding: ImportBinding, file: FileScan) -> bool:
    """A default/namespace import whose value is used directly, not only via members."""
    if binding.export_name not in (WILDCARD, DEFAULT_EXPORT):
        return False
    return file.direct_usage(binding.local_name) > 0


class UsageAggregator:
    """Classifies each import of one dependency as used or unused."""

    def __init__(self, dependency: str, resolver: Optional[ReExportResolver] = None):
        self.dependency = dependency
        self.resolver = resolver
        self._used: dict[tuple[str, str], ImportUse] = {}
        self._unused: dict[tuple[str, str], ImportUse] = {}
        self._result = DependencyUsage()

    def collect(self, scan: ScanResult) -> DependencyUsage:
        resolver = self.resolver or ReExportResolver(scan)
        for file in scan.files:
            for binding in file.imports:
                self._apply(file, binding, resolver)

        result = self._result
        result.used_imports = _flatten(self._used)
        used_keys = {entry.key for entry in result.used_imports}
        result.unused_imports = [entry for entry in _flatten(self._unused) if entry.key not in used_keys]

        if not result.used_exports:
            result.warnings.append(no_used_exports_warning(self.dependency))
        if result.has_ambiguous_imports:
            result.warnings.append(AMBIGUOUS_IMPORTS_WARNING)
        result.warnings.extend(resolver.warnings)

        logger.debug(
            f"{self.dependency}: {len(result.used_imports)} used imports, "
            f"{len(result.unused_imports)} unused, {len(result.used_exports)} exports referenced"
        )
        return result

    def _apply(self, file: FileScan, binding: ImportBinding, resolver: ReExportResolver) -> None:
        provenance = None
        attribution = resolver.resolve_import_attribution(file.path, binding, self.dependency)
        if attribution is not None:
            binding = replace(binding, module=attribution.module, export_name=attribution.export_name)
            provenance = attribution.provenance
        if not matches_dependency(binding.module, self.dependency):
            return

        entry = ImportUse(
            name=binding.export_name,
            module=binding.module,
            locations=[binding.location],
            provenance=[provenance] if provenance else [],
        )
        target = self._used if self._record_usage(file, binding) else self._unused
        _merge(target, entry)
        if is_ambiguous_import(binding, file):
            self._result.has_ambiguous_imports = True

    def _record_usage(self, file: FileScan, binding: ImportBinding) -> bool:
        if binding.kind is ImportKind.NAMED:
            count = file.identifier_usage.get(binding.local_name, 0)
            if count <= 0:
                return False
            self._tally(binding.export_name, count)
            return True

        used = False
        for prop, count in sorted(file.namespace_usage.get(binding.local_name, {}).items()):
            used = True
            self._tally(prop, count)
        direct = file.direct_usage(binding.local_name)
        if direct > 0:
            used = True
            self._tally(DEFAULT_EXPORT if binding.kind is ImportKind.DEFAULT else WILDCARD, direct)
        return used

    def _tally(self, name: str, count: int) -> None:
        self._result.used_exports.add(name)
        self._result.counts[name] = self._result.counts.get(name, 0) + count


def _merge(target: dict[tuple[str, str], ImportUse], entry: ImportUse) -> None:
    current = target.get(entry.key)
    if current is None:
        target[entry.key] = entry
        return
    current.locations.extend(entry.locations)
    for item in entry.provenance:
        if item not in current.provenance:
            current.provenance.append(item)


def _flatten(source: dict[tuple[str, str], ImportUse]) -> list[ImportUse]:
    entries = sorted(source.values(), key=lambda entry: entry.key)
    for entry in entries:
        entry.locations.sort(key=lambda loc: loc.sort_key())
    return entries


def collect_dependency_usage(
    scan: ScanResult, dependency: str, resolver: Optional[ReExportResolver] = None
) -> DependencyUsage:
    """Aggregate how the scanned repository uses ``dependency``."""
    return UsageAggregator(dependency, resolver).collect(scan)
