"""Dependency usage analysis: export surfaces, attribution, usage, risk and scoring."""

from .codemod import SubpathResolver, build_subpath_codemod
from .dependencies import (
    DependencyInventory,
    dependency_from_module,
    dependency_root,
    list_dependencies,
    matches_dependency,
    resolve_dependency_roots,
)
from .engine import DependencyAnalyzer, analyse_repository, check_uncertainty_threshold
from .exports import (
    RUNTIME_PROFILES,
    ExportSurface,
    ExportSurfaceResolver,
    RuntimeProfile,
    resolve_dependency_exports,
    resolve_runtime_profile,
)
from .manifest import ExportsArray, ExportsObject, ExportsString, PackageManifest, load_manifest
from .recommendations import build_recommendations
from .reexports import ReExportResolver, ResolvedAttribution
from .risk import assess_risk_cues
from .scoring import annotate_removal_candidates, normalize_weights, sort_by_waste
from .usage import DependencyUsage, collect_dependency_usage

__all__ = [
    "DependencyAnalyzer",
    "analyse_repository",
    "check_uncertainty_threshold",
    "RuntimeProfile",
    "RUNTIME_PROFILES",
    "resolve_runtime_profile",
    "ExportSurface",
    "ExportSurfaceResolver",
    "resolve_dependency_exports",
    "ExportsString",
    "ExportsArray",
    "ExportsObject",
    "PackageManifest",
    "load_manifest",
    "ReExportResolver",
    "ResolvedAttribution",
    "DependencyUsage",
    "collect_dependency_usage",
    "assess_risk_cues",
    "build_recommendations",
    "SubpathResolver",
    "build_subpath_codemod",
    "annotate_removal_candidates",
    "normalize_weights",
    "sort_by_waste",
    "DependencyInventory",
    "dependency_from_module",
    "dependency_root",
    "list_dependencies",
    "matches_dependency",
    "resolve_dependency_roots",
]
