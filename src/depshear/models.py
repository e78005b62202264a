"""Report data model.

Everything a formatter needs to render one analysis run. All list fields
are filled in a deterministic order by the analysis layer.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

SCHEMA_VERSION = "1"


@dataclass(frozen=True)
class Location:
    """A 1-based position in a repository file."""

    file: str
    line: int
    column: int

    def sort_key(self) -> tuple[str, int, int]:
        return (self.file, self.line, self.column)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass
class ImportUse:
    """One dependency export as imported by the repository.

    Occurrences of the same ``(module, name)`` pair merge into one entry.
    """

    name: str
    module: str
    locations: list[Location] = field(default_factory=list)
    provenance: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.module, self.name)


@dataclass
class SymbolUsage:
    name: str
    count: int


@dataclass
class SymbolRef:
    name: str
    module: str


@dataclass
class RiskCue:
    code: str
    severity: str
    message: str


@dataclass
class Recommendation:
    code: str
    priority: str
    message: str
    rationale: str = ""


@dataclass
class CodemodSuggestion:
    file: str
    line: int
    import_name: str
    from_module: str
    to_module: str
    original: str
    replacement: str
    patch: str


@dataclass
class CodemodSkip:
    file: str
    line: int
    import_name: str
    module: str
    reason_code: str
    message: str


@dataclass
class CodemodReport:
    mode: str
    suggestions: list[CodemodSuggestion] = field(default_factory=list)
    skips: list[CodemodSkip] = field(default_factory=list)


@dataclass(frozen=True)
class RemovalCandidateWeights:
    usage: float
    impact: float
    confidence: float


@dataclass
class RemovalCandidate:
    """Composite removal score, each component on a 0-100 scale."""

    score: float
    usage: float
    impact: float
    confidence: float
    weights: RemovalCandidateWeights
    rationale: list[str] = field(default_factory=list)


@dataclass
class DependencyReport:
    """Usage findings for a single dependency."""

    name: str
    used_exports_count: int = 0
    total_exports_count: int = 0
    used_percent: float = 0.0
    top_used_symbols: list[SymbolUsage] = field(default_factory=list)
    used_imports: list[ImportUse] = field(default_factory=list)
    unused_imports: list[ImportUse] = field(default_factory=list)
    unused_exports: list[SymbolRef] = field(default_factory=list)
    risk_cues: list[RiskCue] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    codemod: Optional[CodemodReport] = None
    removal_candidate: Optional[RemovalCandidate] = None


@dataclass
class Summary:
    dependency_count: int
    used_exports_count: int
    total_exports_count: int
    used_percent: float

    @classmethod
    def from_dependencies(cls, dependencies: list[DependencyReport]) -> Optional["Summary"]:
        """Aggregate dependency totals; None when nothing was analysed."""
        if not dependencies:
            return None
        used = sum(d.used_exports_count for d in dependencies)
        total = sum(d.total_exports_count for d in dependencies)
        percent = (used / total) * 100 if total > 0 else 0.0
        return cls(
            dependency_count=len(dependencies),
            used_exports_count=used,
            total_exports_count=total,
            used_percent=percent,
        )


@dataclass
class UsageUncertainty:
    """How many imports were statically confirmed vs. dynamically computed."""

    confirmed_import_uses: int
    uncertain_import_uses: int
    samples: list[Location] = field(default_factory=list)


@dataclass
class Report:
    """Top-level result of one ``depshear analyse`` run."""

    repo_path: str
    generated_at: str
    schema_version: str = SCHEMA_VERSION
    dependencies: list[DependencyReport] = field(default_factory=list)
    summary: Optional[Summary] = None
    usage_uncertainty: Optional[UsageUncertainty] = None
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
