"""Removal-candidate scoring.

Each dependency gets a 0-100 score combining three signals:

- usage: share of the export surface left unused
- impact: unused exports relative to the most wasteful analysed dependency
- confidence: how far the static picture can be trusted
"""

from __future__ import annotations

import math
from typing import Optional

from ..models import DependencyReport, RemovalCandidate, RemovalCandidateWeights
from ..scanning import WILDCARD

DEFAULT_REMOVAL_WEIGHTS = RemovalCandidateWeights(usage=0.5, impact=0.3, confidence=0.2)

MISSING_INVENTORY_PENALTY = 35.0
WILDCARD_IMPORT_PENALTY = 15.0
RISK_PENALTIES = {"high": 20.0, "medium": 12.0, "low": 6.0}

UNKNOWN_USAGE_RATIONALE = "usage coverage unknown because total exports are unavailable"
WILDCARD_IMPORT_RATIONALE = "wildcard import usage reduces per-symbol confidence"


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _round1(value: float) -> float:
    """Round half away from zero to one decimal place."""
    return math.copysign(math.floor(abs(value) * 10 + 0.5) / 10, value)


def normalize_weights(weights: Optional[RemovalCandidateWeights]) -> RemovalCandidateWeights:
    """Scale weights to sum to 1; defaults for missing, negative or non-finite input."""
    if weights is None:
        return DEFAULT_REMOVAL_WEIGHTS
    values = (weights.usage, weights.impact, weights.confidence)
    if any(not math.isfinite(v) or v < 0 for v in values):
        return DEFAULT_REMOVAL_WEIGHTS
    total = sum(values)
    if not math.isfinite(total) or total <= 0:
        return DEFAULT_REMOVAL_WEIGHTS
    return RemovalCandidateWeights(
        usage=weights.usage / total,
        impact=weights.impact / total,
        confidence=weights.confidence / total,
    )


def usage_signal(dep: DependencyReport) -> Optional[float]:
    """Unused share of the surface, or None when the surface size is unknown."""
    if dep.total_exports_count <= 0:
        return None
    used_percent = dep.used_percent
    if used_percent <= 0:
        used_percent = dep.used_exports_count / dep.total_exports_count * 100
    return _clamp(100 - used_percent)


def raw_impact(dep: DependencyReport) -> float:
    if dep.total_exports_count <= 0:
        return 0.0
    return float(max(0, dep.total_exports_count - dep.used_exports_count))


def confidence_signal(dep: DependencyReport) -> tuple[float, list[str]]:
    penalty = 0.0
    rationale: list[str] = []
    if dep.total_exports_count <= 0:
        penalty += MISSING_INVENTORY_PENALTY
    if any(imp.name == WILDCARD for imp in dep.used_imports):
        penalty += WILDCARD_IMPORT_PENALTY
        rationale.append(WILDCARD_IMPORT_RATIONALE)
    for cue in dep.risk_cues:
        penalty += RISK_PENALTIES.get(cue.severity.lower(), 0.0)
    return _clamp(100 - penalty), rationale


def removal_candidate(
    dep: DependencyReport, max_impact: float, weights: RemovalCandidateWeights
) -> RemovalCandidate:
    usage = usage_signal(dep)
    impact = _clamp(raw_impact(dep) / max_impact * 100) if max_impact > 0 else 0.0
    confidence, rationale = confidence_signal(dep)
    if usage is None:
        rationale.append(UNKNOWN_USAGE_RATIONALE)
        usage = 0.0

    score = usage * weights.usage + impact * weights.impact + confidence * weights.confidence
    return RemovalCandidate(
        score=_round1(score),
        usage=_round1(usage),
        impact=_round1(impact),
        confidence=_round1(confidence),
        weights=weights,
        rationale=rationale,
    )


def annotate_removal_candidates(
    dependencies: list[DependencyReport], weights: Optional[RemovalCandidateWeights] = None
) -> None:
    """Attach a RemovalCandidate to every report in place."""
    if not dependencies:
        return
    weights = normalize_weights(weights)
    max_impact = max(raw_impact(dep) for dep in dependencies)
    for dep in dependencies:
        dep.removal_candidate = removal_candidate(dep, max_impact, weights)


def waste_sort_key(dep: DependencyReport) -> tuple[int, float, str]:
    if dep.removal_candidate is None:
        return (1, 0.0, dep.name)
    return (0, -dep.removal_candidate.score, dep.name)


def sort_by_waste(
    dependencies: list[DependencyReport], weights: Optional[RemovalCandidateWeights] = None
) -> list[DependencyReport]:
    """Score and rank: known scores first, score descending, then name."""
    annotate_removal_candidates(dependencies, weights)
    return sorted(dependencies, key=waste_sort_key)
