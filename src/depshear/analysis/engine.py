"""Analysis orchestrator: scan once, then build one report per dependency.

Pure engine. Rendering is handled by the ``formatters`` package and the
uncertainty gate is applied by the caller after the report is shown.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from ..config import AnalysisConfig
from ..exceptions import UncertaintyThresholdExceededError
from ..logging_config import get_logger
from ..models import DependencyReport, Location, RemovalCandidateWeights, Report, Summary, UsageUncertainty
from ..scanning import ScanResult, SourceParser, scan_repo
from .codemod import build_subpath_codemod
from .dependencies import list_dependencies, matches_dependency, resolve_dependency_roots
from .exports import ExportSurfaceResolver
from .recommendations import build_recommendations
from .reexports import ReExportResolver
from .risk import assess_risk_cues
from .scoring import annotate_removal_candidates, sort_by_waste
from .usage import WILDCARD_SURFACE_WARNING, collect_dependency_usage

logger = get_logger(__name__)

NO_TARGET_WARNING = "no dependency or top-N target provided"
NO_TOP_N_DATA_WARNING = "no dependency data available for top-N ranking"
UNCERTAINTY_SAMPLE_LIMIT = 5

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


class DependencyAnalyzer:
    """Builds depshear reports for a repository.

    Example:
        >>> analyzer = DependencyAnalyzer("path/to/repo")
        >>> report = analyzer.analyse(dependency="lodash")
        >>> report.dependencies[0].used_exports_count
        3
    """

    def __init__(
        self,
        repo_path: str | Path,
        config: Optional[AnalysisConfig] = None,
        parser: Optional[SourceParser] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize analyzer.

        Args:
            repo_path: Repository root
            config: Analysis configuration (defaults when omitted)
            parser: Shared source parser
            clock: Returns the report timestamp; injectable for reproducible output
        """
        self.repo_path = Path(repo_path).resolve()
        self.config = config or AnalysisConfig()
        self.parser = parser or SourceParser()
        self.clock = clock or _utc_now
        self.surface_resolver = ExportSurfaceResolver(self.parser)

    def analyse(
        self,
        dependency: Optional[str] = None,
        top_n: int = 0,
        dependency_root: Optional[str | Path] = None,
        suggest_only: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> Report:
        """
        Run one analysis.

        Args:
            dependency: Analyse this package only
            top_n: When no dependency is given, rank every installed package and keep N
            dependency_root: Installed root override for ``dependency``
            suggest_only: Attach subpath codemod suggestions
            cancel_event: Cancels the repository scan when set

        Returns:
            The assembled report

        Raises:
            InvalidPathError: If the repository root is missing
            FileAccessError: If a source file cannot be read
            ScanCancelledError: If ``cancel_event`` is set during the scan
        """
        report = Report(repo_path=str(self.repo_path), generated_at=self.clock().isoformat())
        scan = scan_repo(
            self.repo_path,
            parser=self.parser,
            cancel_event=cancel_event,
            parse_error_sample_limit=self.config.parse_error_sample_limit,
        )
        warnings = list(scan.warnings)

        if dependency:
            dep_report, dep_warnings = self._analyse_single(dependency, dependency_root, scan, suggest_only)
            report.dependencies = [dep_report]
            warnings.extend(dep_warnings)
        elif top_n > 0:
            report.dependencies, top_warnings = self._analyse_top(top_n, scan, suggest_only)
            warnings.extend(top_warnings)
        else:
            warnings.append(NO_TARGET_WARNING)

        if report.dependencies:
            report.summary = Summary.from_dependencies(report.dependencies)
        report.usage_uncertainty = self.usage_uncertainty(scan, [d.name for d in report.dependencies])
        report.warnings = _dedupe(warnings)

        logger.info(
            f"Analysis complete: {len(report.dependencies)} dependencies, {len(report.warnings)} warnings"
        )
        return report

    @property
    def removal_weights(self) -> RemovalCandidateWeights:
        usage, impact, confidence = self.config.removal_weights
        return RemovalCandidateWeights(usage=usage, impact=impact, confidence=confidence)

    def _analyse_single(
        self,
        dependency: str,
        dependency_root: Optional[str | Path],
        scan: ScanResult,
        suggest_only: bool,
    ) -> tuple[DependencyReport, list[str]]:
        roots = resolve_dependency_roots(self.repo_path, dependency, scan)
        root = Path(dependency_root) if dependency_root else (roots[0] if roots else None)
        dep_report, warnings = self.build_dependency_report(dependency, root, scan, suggest_only)
        annotate_removal_candidates([dep_report], self.removal_weights)
        if len(roots) > 1:
            warnings.append(f"dependency resolves to multiple node_modules roots: {dependency}")
        return dep_report, warnings

    def _analyse_top(
        self, top_n: int, scan: ScanResult, suggest_only: bool
    ) -> tuple[list[DependencyReport], list[str]]:
        inventory = list_dependencies(self.repo_path, scan)
        warnings = list(inventory.warnings)
        reports: list[DependencyReport] = []
        for name in inventory.names:
            dep_report, dep_warnings = self.build_dependency_report(
                name, inventory.roots.get(name), scan, suggest_only
            )
            reports.append(dep_report)
            warnings.extend(dep_warnings)

        ranked = sort_by_waste(reports, self.removal_weights)[:top_n]
        if not ranked:
            warnings.append(NO_TOP_N_DATA_WARNING)
        return ranked, warnings

    def build_dependency_report(
        self,
        dependency: str,
        dependency_root: Optional[Path],
        scan: ScanResult,
        suggest_only: bool = False,
    ) -> tuple[DependencyReport, list[str]]:
        """
        Assemble the report for one dependency.

        Returns:
            (report without removal score, warnings in the order they arose)
        """
        warnings: list[str] = []

        surface = self.surface_resolver.resolve(
            self.repo_path, dependency, dependency_root, self.config.runtime_profile
        )
        warnings.extend(surface.warnings)
        if surface.includes_wildcard:
            warnings.append(WILDCARD_SURFACE_WARNING)

        usage = collect_dependency_usage(scan, dependency, ReExportResolver(scan))
        warnings.extend(usage.warnings)

        total = surface.total_exports or 0
        used_count = len(usage.used_exports & surface.names)
        used_percent = used_count / total * 100 if total else 0.0
        if used_count == 0 and total == 0:
            used_count = len(usage.used_exports)

        risk_cues, risk_warnings = assess_risk_cues(self.repo_path, dependency, surface, dependency_root)
        warnings.extend(risk_warnings)

        dep_report = DependencyReport(
            name=dependency,
            used_exports_count=used_count,
            total_exports_count=total,
            used_percent=used_percent,
            top_used_symbols=usage.top_symbols(self.config.top_symbols_limit),
            used_imports=usage.used_imports,
            unused_imports=usage.unused_imports,
            unused_exports=usage.unused_exports(dependency, surface.names),
            risk_cues=risk_cues,
        )
        dep_report.recommendations = build_recommendations(
            dependency, dep_report, self.config.min_usage_percent_for_recommendations
        )
        if suggest_only:
            dep_report.codemod, codemod_warnings = build_subpath_codemod(
                self.repo_path, dependency, dependency_root, scan
            )
            warnings.extend(codemod_warnings)

        logger.debug(f"{dependency}: {used_count}/{total} exports used ({used_percent:.1f}%)")
        return dep_report, warnings

    @staticmethod
    def usage_uncertainty(scan: ScanResult, dependencies: list[str]) -> UsageUncertainty:
        """Static import bindings of the analysed dependencies vs. dynamic loader calls."""
        confirmed = sum(
            1
            for file in scan.files
            for binding in file.imports
            if any(matches_dependency(binding.module, dep) for dep in dependencies)
        )
        uncertain = sorted(scan.uncertain_imports, key=lambda item: item.location.sort_key())
        samples: list[Location] = [item.location for item in uncertain[:UNCERTAINTY_SAMPLE_LIMIT]]
        return UsageUncertainty(
            confirmed_import_uses=confirmed,
            uncertain_import_uses=len(uncertain),
            samples=samples,
        )


def check_uncertainty_threshold(report: Report, max_uncertain: int) -> None:
    """Fail when dynamic imports exceed ``max_uncertain`` (0 disables the check).

    Raises:
        UncertaintyThresholdExceededError: If the threshold is exceeded
    """
    if max_uncertain <= 0 or report.usage_uncertainty is None:
        return
    uncertain = report.usage_uncertainty.uncertain_import_uses
    if uncertain > max_uncertain:
        raise UncertaintyThresholdExceededError(uncertain, max_uncertain)


def analyse_repository(
    repo_path: str | Path,
    dependency: Optional[str] = None,
    top_n: int = 0,
    config: Optional[AnalysisConfig] = None,
    **kwargs,
) -> Report:
    """Convenience wrapper around ``DependencyAnalyzer.analyse``."""
    return DependencyAnalyzer(repo_path, config=config).analyse(dependency=dependency, top_n=top_n, **kwargs)
