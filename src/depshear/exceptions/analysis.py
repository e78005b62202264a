"""Analysis-related exceptions: file access, parsing, cancellation, manifests."""

from pathlib import Path
from typing import List

from .base import DepshearError


class AnalysisError(DepshearError):
    """Base class for analysis-related errors."""
    pass


class FileAccessError(AnalysisError):
    """Raised when a file cannot be accessed or read."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class ParsingError(AnalysisError):
    """Raised when file content cannot be parsed."""

    def __init__(self, filepath: Path, language: str, reason: str):
        super().__init__(
            f"Failed to parse {language} file: {filepath}",
            details={"filepath": str(filepath), "language": language, "reason": reason},
        )
        self.filepath = filepath
        self.language = language
        self.reason = reason


class UnsupportedLanguageError(AnalysisError):
    """Raised when no grammar is registered for a file extension."""

    def __init__(self, language: str, supported_languages: List[str]):
        super().__init__(
            f"Unsupported language: {language}",
            details={"language": language, "supported": ", ".join(supported_languages)},
        )
        self.language = language
        self.supported_languages = supported_languages


class ScanCancelledError(AnalysisError):
    """Raised when a repository scan is cancelled before it completes."""

    def __init__(self, files_scanned: int):
        super().__init__(
            "Scan cancelled",
            details={"files_scanned": str(files_scanned)},
        )
        self.files_scanned = files_scanned


class ManifestError(AnalysisError):
    """Raised when a dependency package.json cannot be read or decoded."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Invalid package manifest: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class UncertaintyThresholdExceededError(AnalysisError):
    """Raised when more imports are uncertain than the configured maximum."""

    def __init__(self, uncertain: int, threshold: int):
        super().__init__(
            f"Uncertain import count {uncertain} exceeds threshold {threshold}",
            details={"uncertain": str(uncertain), "threshold": str(threshold)},
        )
        self.uncertain = uncertain
        self.threshold = threshold
