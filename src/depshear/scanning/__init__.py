"""JS/TS source scanning: parse files and extract import/usage facts."""

from .extractor import analyze_source, collect_export_names
from .languages import LANGUAGES, SKIP_DIRS, LanguageConfig, detect_language, is_supported_file
from .models import (
    DEFAULT_EXPORT,
    DYNAMIC_MODULE,
    WILDCARD,
    FileScan,
    ImportBinding,
    ImportKind,
    ReExportBinding,
    ScanResult,
    UncertainImport,
)
from .scanner import RepositoryScanner, scan_repo
from .treesitter_parser import GrammarRegistry, ParsedSource, SourceParser, SyntaxNode

__all__ = [
    "LanguageConfig",
    "LANGUAGES",
    "SKIP_DIRS",
    "detect_language",
    "is_supported_file",
    "GrammarRegistry",
    "SourceParser",
    "ParsedSource",
    "SyntaxNode",
    "analyze_source",
    "collect_export_names",
    "RepositoryScanner",
    "scan_repo",
    "FileScan",
    "ScanResult",
    "ImportBinding",
    "ImportKind",
    "ReExportBinding",
    "UncertainImport",
    "DYNAMIC_MODULE",
    "WILDCARD",
    "DEFAULT_EXPORT",
]
