"""Shared CLI helpers."""

from enum import Enum
from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import AnalysisConfig, load_config

console = Console()
err_console = Console(stderr=True)

EXIT_ERROR = 1
EXIT_UNCERTAINTY_THRESHOLD = 3
EXIT_INTERRUPTED = 130


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


def resolve_config(
    config: Optional[Path] = None,
    runtime_profile: Optional[str] = None,
    min_usage_percent: Optional[int] = None,
    max_uncertain_imports: Optional[int] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> AnalysisConfig:
    """Build configuration from CLI options."""
    overrides = {}
    if runtime_profile is not None:
        overrides["runtime_profile"] = runtime_profile
    if min_usage_percent is not None:
        overrides["min_usage_percent_for_recommendations"] = min_usage_percent
    if max_uncertain_imports is not None:
        overrides["max_uncertain_import_count"] = max_uncertain_imports
    if verbose:
        overrides["verbose"] = True
    if quiet:
        overrides["quiet"] = True
    return load_config(config_file=config, **overrides)
