"""
depshear - dependency usage analysis for JavaScript/TypeScript repositories

Measures which exports of each npm dependency a repository actually uses,
follows local re-export chains back to the package they came from and flags
risk cues, removal candidates and safe subpath-import rewrites.
"""

__version__ = "0.1.0"

from .analysis import DependencyAnalyzer, analyse_repository
from .config import AnalysisConfig, load_config
from .models import DependencyReport, Report

__all__ = [
    "analyse_repository",  # Main entry point
    "DependencyAnalyzer",  # Advanced usage (custom parser / clock)
    "AnalysisConfig",
    "load_config",
    "Report",
    "DependencyReport",
]
