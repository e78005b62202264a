"""Dependency names and their installed node_modules roots."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..exceptions import InvalidDependencyError
from ..logging_config import get_logger
from ..scanning import ScanResult
from .builtins import is_node_builtin

logger = get_logger(__name__)

PACKAGE_MANIFEST = "package.json"


def matches_dependency(module: str, dependency: str) -> bool:
    """True when ``module`` is ``dependency`` itself or one of its subpaths."""
    return module == dependency or module.startswith(dependency + "/")


def dependency_from_module(module: str) -> Optional[str]:
    """Package name a specifier refers to, or None for builtins and local paths.

    ``@scope/name/sub`` maps to ``@scope/name`` and ``name/sub`` to ``name``.
    """
    module = module.strip()
    if not module or is_node_builtin(module):
        return None
    if module.startswith((".", "/")):
        return None
    parts = module.split("/")
    if module.startswith("@"):
        if len(parts) < 2 or len(parts[0]) <= 1 or not parts[1]:
            return None
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


def dependency_path_parts(dependency: str) -> tuple[str, ...]:
    """Path segments of a dependency below ``node_modules``.

    Raises:
        InvalidDependencyError: For empty names or a scope without a package
    """
    dependency = dependency.strip()
    if not dependency:
        raise InvalidDependencyError(dependency, "dependency is empty")
    if dependency.startswith("@"):
        scope, _, name = dependency.partition("/")
        if not name or len(scope) <= 1:
            raise InvalidDependencyError(dependency, "invalid scoped dependency")
        return (scope, name)
    return (dependency,)


def dependency_root(repo_path: str | Path, dependency: str) -> Path:
    """``<repo>/node_modules/<dependency>`` (no existence check)."""
    return Path(repo_path).joinpath("node_modules", *dependency_path_parts(dependency))


def installed_root_at(directory: Path, dependency: str) -> Optional[Path]:
    """Dependency root under ``directory/node_modules`` when its manifest exists."""
    try:
        root = directory.joinpath("node_modules", *dependency_path_parts(dependency))
    except InvalidDependencyError:
        return None
    if (root / PACKAGE_MANIFEST).is_file():
        return root
    return None


def find_root_from_importer(repo_path: str | Path, importer: str | Path, dependency: str) -> Optional[Path]:
    """Node-style lookup: walk from the importer's directory up to the repo root."""
    repo = Path(repo_path).resolve()
    importer_path = Path(importer)
    if not importer_path.is_absolute():
        importer_path = repo / importer_path
    current = importer_path.resolve().parent
    try:
        current.relative_to(repo)
    except ValueError:
        return None

    while True:
        root = installed_root_at(current, dependency)
        if root is not None:
            return root
        if current == repo or current.parent == current:
            return None
        current = current.parent


def resolve_dependency_roots(repo_path: str | Path, dependency: str, scan: ScanResult) -> list[Path]:
    """Every distinct installed root reached by the repository's imports of ``dependency``."""
    roots: set[Path] = set()
    for file in scan.files:
        if not any(matches_dependency(imp.module, dependency) for imp in file.imports):
            continue
        root = find_root_from_importer(repo_path, file.path, dependency)
        if root is not None:
            roots.add(root)
    return sorted(roots)


@dataclass
class DependencyInventory:
    """Installed dependencies referenced by the repository's imports."""

    names: list[str] = field(default_factory=list)
    roots: dict[str, Path] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


class DependencyCollector:
    """Collects imported packages and where each one is installed."""

    def __init__(self, repo_path: str | Path):
        self.repo_path = Path(repo_path)
        self._found: set[str] = set()
        self._roots: dict[str, Path] = {}
        self._multi_root: set[str] = set()
        self._missing: set[str] = set()
        self._cache: dict[tuple[str, str], Optional[Path]] = {}

    def record(self, importer: str, module: str) -> None:
        dependency = dependency_from_module(module)
        if dependency is None:
            return
        key = (importer, dependency)
        if key not in self._cache:
            self._cache[key] = find_root_from_importer(self.repo_path, importer, dependency)
        root = self._cache[key]
        if root is None:
            if dependency not in self._found:
                self._missing.add(dependency)
            return
        self._found.add(dependency)
        self._missing.discard(dependency)
        current = self._roots.get(dependency)
        if current is None:
            self._roots[dependency] = root
        elif current != root:
            self._multi_root.add(dependency)

    def inventory(self) -> DependencyInventory:
        warnings = [f"dependency not found in node_modules: {dep}" for dep in self._missing]
        warnings += [f"dependency resolves to multiple node_modules roots: {dep}" for dep in self._multi_root]
        return DependencyInventory(
            names=sorted(self._found),
            roots=dict(self._roots),
            warnings=sorted(warnings),
        )


def list_dependencies(repo_path: str | Path, scan: ScanResult) -> DependencyInventory:
    """Inventory every installed package the scanned files import."""
    collector = DependencyCollector(repo_path)
    for file in scan.files:
        for imp in file.imports:
            collector.record(file.path, imp.module)
    inventory = collector.inventory()
    logger.debug(f"Found {len(inventory.names)} installed dependencies in imports")
    return inventory
