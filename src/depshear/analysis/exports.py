"""Export surface resolution for installed dependencies.

Reads a dependency's package.json, interprets its ``exports`` map for one
runtime profile (falling back to ``main``/``module``/``types``/``typings``),
locates the entrypoint files and collects the names they export.

Every problem short of a programming error becomes a warning on the
returned ``ExportSurface``; one broken package never aborts a report.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..exceptions import InvalidDependencyError, ManifestError, ParsingError, UnsupportedLanguageError
from ..logging_config import get_logger
from ..scanning import WILDCARD, SourceParser, UncertainImport, collect_export_names
from ..scanning.extractor import collect_import_bindings
from .dependencies import dependency_root
from .manifest import (
    ExportsArray,
    ExportsNode,
    ExportsObject,
    ExportsString,
    PackageManifest,
    load_manifest,
    manifest_warning,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RuntimeProfile:
    """Ordered condition tokens used to pick branches of an exports map."""

    name: str
    conditions: tuple[str, ...]


DEFAULT_RUNTIME_PROFILE = "node-import"

RUNTIME_PROFILES: dict[str, RuntimeProfile] = {
    "node-import": RuntimeProfile("node-import", ("node", "import", "default")),
    "node-require": RuntimeProfile("node-require", ("node", "require", "default")),
    "browser-import": RuntimeProfile("browser-import", ("browser", "import", "default")),
    "browser-require": RuntimeProfile("browser-require", ("browser", "require", "default")),
}

CONDITION_KEYS = frozenset(
    {"browser", "node", "default", "import", "require", "development", "production", "types"}
)

CODE_ASSET_SUFFIXES = (".d.ts", ".js", ".mjs", ".cjs", ".ts", ".tsx", ".cts", ".mts")

# Probe order for extensionless entrypoints.
ENTRYPOINT_PROBE_SUFFIXES = (".js", ".mjs", ".cjs", ".ts", ".tsx", ".d.ts")

DEFAULT_ENTRYPOINT = "index.js"


def resolve_runtime_profile(name: Optional[str]) -> tuple[RuntimeProfile, Optional[str]]:
    """Look up a runtime profile by name.

    Returns:
        (profile, warning) where ``warning`` is set when ``name`` was not
        recognised and the default profile was substituted
    """
    key = (name or "").strip().lower() or DEFAULT_RUNTIME_PROFILE
    profile = RUNTIME_PROFILES.get(key)
    if profile is not None:
        return profile, None
    supported = ", ".join(RUNTIME_PROFILES)
    warning = f'unknown runtime profile "{name}"; using "{DEFAULT_RUNTIME_PROFILE}" (supported: {supported})'
    return RUNTIME_PROFILES[DEFAULT_RUNTIME_PROFILE], warning


def is_likely_code_asset(path: str) -> bool:
    return path.strip().lower().endswith(CODE_ASSET_SUFFIXES)


def is_condition_key(key: str) -> bool:
    return key.strip().lower() in CONDITION_KEYS


def is_subpath_key(key: str) -> bool:
    return key.strip().startswith(".")


@dataclass
class ExportSurface:
    """Public API of one dependency as seen from one runtime profile.

    ``dynamic_imports`` lists require()/import() calls with computed targets
    found in the entrypoints, located by entrypoint file name.
    """

    names: set[str] = field(default_factory=set)
    includes_wildcard: bool = False
    entrypoints: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    dynamic_imports: list[UncertainImport] = field(default_factory=list)

    @property
    def total_exports(self) -> Optional[int]:
        """Number of exports, or None when a wildcard re-export hides the total."""
        if self.includes_wildcard:
            return None
        return len(self.names)

    def add_names(self, names: list[str]) -> None:
        for name in names:
            if name == WILDCARD:
                self.includes_wildcard = True
            elif name:
                self.names.add(name)


class ExportsMapResolver:
    """Resolves a decoded ``exports`` value to entrypoint paths for one profile.

    Warnings are appended to the list passed in so they interleave with the
    caller's own warnings in the order they occur.
    """

    def __init__(self, profile: RuntimeProfile, warnings: list[str]):
        self.profile = profile
        self.warnings = warnings

    def resolve(self, node: Optional[ExportsNode], scope: str = "exports") -> list[str]:
        """Paths ``node`` resolves to; an empty list means no resolution."""
        if isinstance(node, ExportsString):
            return self._resolve_string(node, scope)
        if isinstance(node, ExportsArray):
            return self._resolve_array(node, scope)
        if isinstance(node, ExportsObject):
            return self._resolve_object(node, scope)
        return []

    def _resolve_string(self, node: ExportsString, scope: str) -> list[str]:
        if not is_likely_code_asset(node.value):
            self.warnings.append(f"skipping non-js export target at {scope}: {node.value}")
            return []
        return [node.value]

    def _resolve_array(self, node: ExportsArray, scope: str) -> list[str]:
        for index, item in enumerate(node.items):
            paths = self.resolve(item, f"{scope}[{index}]")
            if paths:
                return paths
        return []

    def _resolve_object(self, node: ExportsObject, scope: str) -> list[str]:
        keys = node.keys()
        if not keys:
            return []
        if any(is_subpath_key(key) for key in keys):
            return self._resolve_union(node, scope, [k for k in sorted(keys) if is_subpath_key(k)])
        if any(is_condition_key(key) for key in keys):
            return self._resolve_conditions(node, scope)
        return self._resolve_union(node, scope, sorted(keys))

    def _resolve_union(self, node: ExportsObject, scope: str, keys: list[str]) -> list[str]:
        collected: set[str] = set()
        for key in keys:
            collected.update(self.resolve(node.get(key), f"{scope}.{key}"))
        return sorted(collected)

    def _resolve_conditions(self, node: ExportsObject, scope: str) -> list[str]:
        matches = [condition for condition in self.profile.conditions if condition in node]
        if not matches:
            return []
        if len(matches) > 1:
            self.warnings.append(
                f'ambiguous export conditions at {scope} for profile "{self.profile.name}": '
                f'matched {", ".join(matches)}; selected "{matches[0]}"'
            )
        for key in matches:
            paths = self.resolve(node.get(key), f"{scope}.{key}")
            if paths:
                return paths
        return []


class ExportSurfaceResolver:
    """Builds the ExportSurface of installed dependencies."""

    def __init__(self, parser: Optional[SourceParser] = None):
        self.parser = parser or SourceParser()

    def resolve(
        self,
        repo_path: str | Path,
        dependency: str,
        dependency_root_path: Optional[str | Path] = None,
        runtime_profile: Optional[str] = None,
    ) -> ExportSurface:
        """
        Resolve the export surface of ``dependency``.

        Args:
            repo_path: Repository root holding ``node_modules``
            dependency: Package name (``name`` or ``@scope/name``)
            dependency_root_path: Pre-resolved package root, bypassing node_modules lookup
            runtime_profile: Profile name; unknown names fall back with a warning

        Returns:
            The surface; check ``warnings`` for anything that degraded it
        """
        surface = ExportSurface()
        profile, profile_warning = resolve_runtime_profile(runtime_profile)
        if profile_warning:
            surface.warnings.append(profile_warning)

        try:
            root = Path(dependency_root_path) if dependency_root_path else dependency_root(repo_path, dependency)
        except InvalidDependencyError as e:
            surface.warnings.append(str(e))
            return surface

        try:
            manifest = load_manifest(root)
        except ManifestError as e:
            logger.debug(f"Manifest for {dependency} not loaded: {e}")
            surface.warnings.append(manifest_warning(e))
            return surface

        candidates = self._candidate_entrypoints(manifest, profile, surface)
        resolved = self._resolve_entrypoints(root, candidates, surface)
        if not resolved:
            surface.warnings.append("no entrypoints resolved for dependency")
            return surface

        self._parse_entrypoints(resolved, surface)
        logger.debug(
            f"{dependency}: {len(surface.names)} exports from {len(surface.entrypoints)} entrypoint(s)"
            f"{' (+wildcard)' if surface.includes_wildcard else ''}"
        )
        return surface

    def _candidate_entrypoints(
        self, manifest: PackageManifest, profile: RuntimeProfile, surface: ExportSurface
    ) -> list[str]:
        entries: list[str] = []
        if manifest.has_exports:
            resolved = ExportsMapResolver(profile, surface.warnings).resolve(manifest.exports)
            entries.extend(entry.strip() for entry in resolved if entry.strip())
            if entries:
                surface.warnings.append(f'info: resolved exports using runtime profile "{profile.name}"')
            else:
                surface.warnings.append(
                    f'no exports resolved for runtime profile "{profile.name}"; falling back to legacy entrypoints'
                )
        if not entries:
            entries = manifest.legacy_entrypoints
        if not entries:
            entries = [DEFAULT_ENTRYPOINT]
        return list(dict.fromkeys(entries))

    def _resolve_entrypoints(self, root: Path, candidates: list[str], surface: ExportSurface) -> list[Path]:
        resolved: list[Path] = []
        for entry in candidates:
            path = resolve_entrypoint(root, entry)
            if path is None:
                surface.warnings.append(f"entrypoint not found: {entry}")
                continue
            if path not in resolved:
                resolved.append(path)
        return resolved

    def _parse_entrypoints(self, entrypoints: list[Path], surface: ExportSurface) -> None:
        for path in entrypoints:
            surface.entrypoints.append(str(path))
            try:
                content = path.read_bytes()
            except OSError:
                surface.warnings.append(f"failed to read entrypoint: {path}")
                continue
            try:
                parsed = self.parser.parse(path.name, content)
            except (UnsupportedLanguageError, ParsingError):
                surface.warnings.append(f"failed to parse entrypoint: {path}")
                continue
            surface.add_names(collect_export_names(parsed.root, parsed.content))
            _, uncertain = collect_import_bindings(parsed.root, parsed.content, path.name)
            surface.dynamic_imports.extend(uncertain)
        surface.entrypoints.sort()


def resolve_entrypoint(root: Path, entry: str) -> Optional[Path]:
    """Map an entrypoint string to a file inside ``root``.

    Existing files are used as-is, directories recurse into ``<dir>/index``
    and names without a code extension are probed with each of
    ``ENTRYPOINT_PROBE_SUFFIXES``. Paths escaping ``root`` never resolve.
    """
    path = Path(entry) if os.path.isabs(entry) else root / entry
    if not _is_within(path, root):
        return None
    if path.is_dir():
        return resolve_entrypoint(root, str(path / "index"))
    if path.is_file():
        return path
    if not is_likely_code_asset(path.name):
        for suffix in ENTRYPOINT_PROBE_SUFFIXES:
            candidate = path.with_name(path.name + suffix)
            if candidate.is_file():
                return candidate
    return None


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def resolve_dependency_exports(
    repo_path: str | Path,
    dependency: str,
    dependency_root_path: Optional[str | Path] = None,
    runtime_profile: Optional[str] = None,
    parser: Optional[SourceParser] = None,
) -> ExportSurface:
    """Convenience wrapper around ``ExportSurfaceResolver.resolve``."""
    return ExportSurfaceResolver(parser).resolve(repo_path, dependency, dependency_root_path, runtime_profile)
