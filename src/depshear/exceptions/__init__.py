"""Exception hierarchy for depshear."""

from .analysis import (
    AnalysisError,
    FileAccessError,
    ManifestError,
    ParsingError,
    ScanCancelledError,
    UncertaintyThresholdExceededError,
    UnsupportedLanguageError,
)
from .base import DepshearError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidDependencyError,
    InvalidPathError,
)

__all__ = [
    "DepshearError",
    "AnalysisError",
    "FileAccessError",
    "ParsingError",
    "UnsupportedLanguageError",
    "ScanCancelledError",
    "ManifestError",
    "UncertaintyThresholdExceededError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
    "InvalidDependencyError",
]
