"""Rule-based recommendations derived from a dependency report."""

from __future__ import annotations

from ..models import DependencyReport, Recommendation
from ..scanning import DEFAULT_EXPORT, WILDCARD

DEFAULT_MIN_USAGE_PERCENT = 40
REPLACEMENT_USAGE_PERCENT = 35

REPLACEMENT_HINTS = {
    "lodash": "Prefer per-method imports (`lodash/<method>`) or native JS methods when possible.",
    "moment": "Consider `date-fns` or `dayjs` for a smaller date utility footprint.",
    "axios": "If browser/runtime support allows, consider native `fetch`.",
}

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}


def build_recommendations(
    dependency: str,
    report: DependencyReport,
    min_usage_percent: int = DEFAULT_MIN_USAGE_PERCENT,
) -> list[Recommendation]:
    """
    Recommend follow-ups for one dependency.

    Args:
        dependency: Package name
        report: Dependency report with usage fields filled in
        min_usage_percent: Below this usage, root-only imports suggest subpath imports

    Returns:
        Recommendations ordered by priority, then code
    """
    recs: list[Recommendation] = []

    if report.used_exports_count == 0 and not report.used_imports:
        recs.append(
            Recommendation(
                code="remove-unused-dependency",
                priority="high",
                message=f'No used imports were detected for "{dependency}"; consider removing it.',
                rationale="Unused dependencies increase install size and maintenance surface.",
            )
        )

    imports = [*report.used_imports, *report.unused_imports]
    root_import_used = any(imp.module == dependency for imp in imports)
    subpath_import_used = any(imp.module.startswith(dependency + "/") for imp in imports)
    wildcard_like = any(imp.name in (WILDCARD, DEFAULT_EXPORT) for imp in imports)

    known_surface = report.total_exports_count > 0
    if (
        known_surface
        and root_import_used
        and not subpath_import_used
        and 0 < report.used_percent < min_usage_percent
    ):
        recs.append(
            Recommendation(
                code="prefer-subpath-imports",
                priority="medium",
                message=(
                    f'Only {report.used_percent:.1f}% of "{dependency}" exports are used; '
                    "prefer subpath imports for used APIs."
                ),
                rationale="Subpath imports can reduce bundled/transpiled dependency surface.",
            )
        )

    if wildcard_like:
        recs.append(
            Recommendation(
                code="avoid-wildcard-default-imports",
                priority="medium",
                message="Default/namespace imports were detected; switch to named imports for better precision.",
                rationale="Named imports improve static analysis and often improve tree-shaking outcomes.",
            )
        )

    hint = REPLACEMENT_HINTS.get(dependency)
    if hint and (0 < report.used_percent <= REPLACEMENT_USAGE_PERCENT or wildcard_like):
        recs.append(
            Recommendation(
                code="consider-replacement",
                priority="low",
                message=hint,
                rationale=f'"{dependency}" currently has relatively low measured usage in this repo.',
            )
        )

    recs.sort(key=lambda r: (PRIORITY_RANK.get(r.priority, len(PRIORITY_RANK)), r.code))
    return recs
