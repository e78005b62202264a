"""Tests for removal-candidate scoring."""

import math

import pytest

from depshear.analysis import annotate_removal_candidates, normalize_weights, sort_by_waste
from depshear.analysis.scoring import (
    DEFAULT_REMOVAL_WEIGHTS,
    UNKNOWN_USAGE_RATIONALE,
    WILDCARD_IMPORT_RATIONALE,
    _round1,
)
from depshear.models import DependencyReport, ImportUse, RemovalCandidateWeights, RiskCue


def _dep(name, used, total, percent=None, **kwargs):
    if percent is None:
        percent = used / total * 100 if total else 0.0
    return DependencyReport(
        name=name, used_exports_count=used, total_exports_count=total, used_percent=percent, **kwargs
    )


class TestWeights:
    """Weight normalisation."""

    def test_normalises_to_one(self):
        """Weights are scaled to sum 1."""
        weights = normalize_weights(RemovalCandidateWeights(2, 1, 1))
        assert weights == RemovalCandidateWeights(0.5, 0.25, 0.25)

    @pytest.mark.parametrize(
        "weights",
        [
            None,
            RemovalCandidateWeights(0, 0, 0),
            RemovalCandidateWeights(-1, 1, 1),
            RemovalCandidateWeights(math.nan, 1, 1),
            RemovalCandidateWeights(math.inf, 1, 1),
        ],
    )
    def test_invalid_weights_use_defaults(self, weights):
        """Missing, zero, negative or non-finite weights fall back to defaults."""
        assert normalize_weights(weights) == DEFAULT_REMOVAL_WEIGHTS


class TestRemovalCandidate:
    """Score composition."""

    def test_single_dependency(self):
        """Usage, impact and confidence combine with the default weights."""
        dep = _dep("pkg", used=2, total=10)
        annotate_removal_candidates([dep])
        candidate = dep.removal_candidate
        assert candidate.usage == 80.0
        assert candidate.impact == 100.0
        assert candidate.confidence == 100.0
        assert candidate.score == 90.0
        assert candidate.rationale == []

    def test_impact_relative_to_max(self):
        """Impact is unused exports relative to the most wasteful dependency."""
        big = _dep("big", used=0, total=40, percent=0.0)
        small = _dep("small", used=5, total=15)
        annotate_removal_candidates([big, small])
        assert big.removal_candidate.impact == 100.0
        assert small.removal_candidate.impact == 25.0

    def test_unknown_surface(self):
        """Unknown totals zero the usage signal and penalise confidence."""
        dep = _dep("pkg", used=3, total=0)
        annotate_removal_candidates([dep])
        candidate = dep.removal_candidate
        assert candidate.usage == 0.0
        assert candidate.impact == 0.0
        assert candidate.confidence == 65.0
        assert candidate.score == 13.0
        assert candidate.rationale == [UNKNOWN_USAGE_RATIONALE]

    def test_confidence_penalties(self):
        """Wildcard imports and risk cues lower confidence."""
        dep = _dep(
            "pkg",
            used=1,
            total=4,
            used_imports=[ImportUse("*", "pkg")],
            risk_cues=[RiskCue("native-module", "high", "x"), RiskCue("dynamic-loader", "medium", "y")],
        )
        annotate_removal_candidates([dep])
        assert dep.removal_candidate.confidence == 53.0
        assert dep.removal_candidate.rationale == [WILDCARD_IMPORT_RATIONALE]

    def test_round_half_away_from_zero(self):
        """Scores round half away from zero to one decimal."""
        assert _round1(12.25) == 12.3
        assert _round1(0.05) == 0.1
        assert _round1(-0.05) == -0.1


class TestSortByWaste:
    """Ranking for top-N mode."""

    def test_score_descending_then_name(self):
        """Higher scores first; ties broken by name."""
        deps = [_dep("b", 1, 10), _dep("a", 1, 10), _dep("c", 9, 10)]
        ranked = sort_by_waste(deps)
        assert [d.name for d in ranked] == ["a", "b", "c"]
        assert ranked[0].removal_candidate.score == ranked[1].removal_candidate.score

    def test_empty(self):
        """Nothing to rank yields nothing."""
        assert sort_by_waste([]) == []
