"""Risk cues for an installed dependency.

Three heuristics, each independent of the others:

- dynamic-loader: entrypoints call require()/import() with computed targets
- native-module: the package builds or ships native binaries
- deep-transitive-graph: the package pulls in a deep chain of dependencies
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from ..exceptions import InvalidDependencyError, ManifestError
from ..logging_config import get_logger
from ..models import RiskCue
from .dependencies import dependency_path_parts, dependency_root
from .exports import ExportSurface
from .manifest import INVALID_JSON_REASON, PackageManifest, load_manifest

logger = get_logger(__name__)

RISK_DYNAMIC_LOADER = "dynamic-loader"
RISK_NATIVE_MODULE = "native-module"
RISK_DEEP_GRAPH = "deep-transitive-graph"

DYNAMIC_LOADER_SAMPLE_LIMIT = 3
NATIVE_SCAN_FILE_LIMIT = 600
INSTALL_SCRIPTS = ("preinstall", "install", "postinstall")
NATIVE_BUILD_TOOLS = ("node-gyp", "prebuild", "node-pre-gyp", "cmake-js")

DEEP_GRAPH_MEDIUM_DEPTH = 4
DEEP_GRAPH_HIGH_DEPTH = 7
DEPTH_RECURSION_BUDGET = 512


def assess_risk_cues(
    repo_path: str | Path,
    dependency: str,
    surface: ExportSurface,
    dependency_root_path: Optional[str | Path] = None,
) -> tuple[list[RiskCue], list[str]]:
    """
    Evaluate risk heuristics for one dependency.

    Args:
        repo_path: Repository root
        dependency: Package name
        surface: Export surface already resolved for the package
        dependency_root_path: Installed root override

    Returns:
        (cues sorted by code, warnings)
    """
    try:
        root = Path(dependency_root_path) if dependency_root_path else dependency_root(repo_path, dependency)
    except InvalidDependencyError as e:
        return [], [f'unable to assess risk cues for "{dependency}": {e}']

    manifest, warnings = _load_metadata(root)
    cues: list[RiskCue] = []

    cue = dynamic_loader_cue(surface)
    if cue is not None:
        cues.append(cue)

    try:
        details = native_module_indicators(root, manifest)
    except OSError as e:
        warnings.append(f'native module scan failed for "{dependency}": {e}')
    else:
        if details:
            cues.append(
                RiskCue(
                    code=RISK_NATIVE_MODULE,
                    severity="high",
                    message=f"dependency appears to include native module indicators ({', '.join(details)})",
                )
            )

    depth = estimate_transitive_depth(repo_path, root, manifest)
    if depth >= DEEP_GRAPH_MEDIUM_DEPTH:
        cues.append(
            RiskCue(
                code=RISK_DEEP_GRAPH,
                severity="high" if depth >= DEEP_GRAPH_HIGH_DEPTH else "medium",
                message=f"transitive dependency depth is {depth} levels",
            )
        )

    cues.sort(key=lambda c: c.code)
    logger.debug(f"{dependency}: risk cues {[c.code for c in cues]}")
    return cues, warnings


def _load_metadata(root: Path) -> tuple[PackageManifest, list[str]]:
    try:
        return load_manifest(root), []
    except ManifestError as e:
        if e.reason.startswith(INVALID_JSON_REASON):
            return PackageManifest(), [f"failed to parse dependency metadata: {e.path}"]
        return PackageManifest(), [f"unable to read dependency metadata: {e.path}"]


def dynamic_loader_cue(surface: ExportSurface) -> Optional[RiskCue]:
    sites = sorted(surface.dynamic_imports, key=lambda item: item.location.sort_key())
    if not sites:
        return None
    samples = [f"{s.location.file}:{s.location.line}" for s in sites[:DYNAMIC_LOADER_SAMPLE_LIMIT]]
    return RiskCue(
        code=RISK_DYNAMIC_LOADER,
        severity="medium",
        message=(
            f"dynamic require/import usage found in {len(sites)} dependency entrypoint "
            f"location(s) ({', '.join(samples)})"
        ),
    )


def native_module_indicators(root: Path, manifest: PackageManifest) -> list[str]:
    """Sorted evidence that the package is a native addon; empty when none.

    Raises:
        OSError: If the package directory cannot be walked
    """
    details: list[str] = []
    if manifest.gypfile:
        details.append("package.json:gypfile")
    for script in INSTALL_SCRIPTS:
        body = manifest.scripts.get(script, "").strip().lower()
        if body and any(tool in body for tool in NATIVE_BUILD_TOOLS):
            details.append(f"scripts.{script}")
    if (root / "binding.gyp").exists():
        details.append("binding.gyp")

    binary = _find_native_binary(root)
    if binary:
        details.append(binary)
    return sorted(set(details))


def _find_native_binary(root: Path) -> Optional[str]:
    if not root.is_dir():
        return None

    def _raise(error: OSError) -> None:
        raise error

    visited = 0
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(d for d in dirnames if d != "node_modules")
        for name in sorted(filenames):
            visited += 1
            if visited > NATIVE_SCAN_FILE_LIMIT:
                return None
            if name.lower().endswith(".node"):
                return name
    return None


def estimate_transitive_depth(repo_path: str | Path, root: Path, manifest: PackageManifest) -> int:
    """Longest chain of installed dependencies starting at ``root`` (the package itself is 1)."""
    return _DepthEstimator(Path(repo_path)).depth(root, manifest, DEPTH_RECURSION_BUDGET)


class _DepthEstimator:
    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self._memo: dict[Path, int] = {}
        self._visiting: set[Path] = set()

    def depth(self, root: Path, manifest: PackageManifest, budget: int) -> int:
        if root in self._memo:
            return self._memo[root]
        if budget <= 0 or root in self._visiting:
            return 1

        self._visiting.add(root)
        try:
            deepest = 0
            for name in manifest.dependency_names:
                child = self._installed_root(root, name)
                if child is None:
                    continue
                try:
                    child_manifest = load_manifest(child)
                except ManifestError:
                    continue
                deepest = max(deepest, self.depth(child, child_manifest, budget - 1))
        finally:
            self._visiting.discard(root)

        self._memo[root] = 1 + deepest
        return 1 + deepest

    def _installed_root(self, package_root: Path, name: str) -> Optional[Path]:
        try:
            parts = dependency_path_parts(name)
        except InvalidDependencyError:
            return None
        for base in (package_root, self.repo_path):
            candidate = base.joinpath("node_modules", *parts)
            if (candidate / "package.json").is_file():
                return candidate
        return None
