"""Repository walk: find JS/TS sources, parse them, extract per-file facts."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Optional

from ..exceptions import FileAccessError, InvalidPathError, ScanCancelledError
from ..logging_config import get_logger
from .extractor import analyze_source
from .languages import SKIP_DIRS, is_supported_file
from .models import FileScan, ScanResult
from .treesitter_parser import SourceParser

logger = get_logger(__name__)

NO_SOURCES_WARNING = "no JS/TS files found for analysis"


class RepositoryScanner:
    """Walks a repository and scans every supported source file."""

    def __init__(
        self,
        root_dir: str | Path,
        parser: Optional[SourceParser] = None,
        parse_error_sample_limit: int = 5,
    ):
        """
        Initialize scanner.

        Args:
            root_dir: Repository root to scan
            parser: Shared source parser (one is created when omitted)
            parse_error_sample_limit: Files named in the parse error warning
        """
        self.root_dir = Path(root_dir)
        self.parser = parser or SourceParser()
        self.parse_error_sample_limit = parse_error_sample_limit

    def scan(self, cancel_event: Optional[threading.Event] = None) -> ScanResult:
        """
        Scan all supported files below the root.

        Args:
            cancel_event: Checked between file visits; when set the scan stops

        Returns:
            ScanResult with files sorted by repo-relative path

        Raises:
            InvalidPathError: If the root is missing or not a directory
            FileAccessError: If a directory or file cannot be read
            ScanCancelledError: If ``cancel_event`` is set mid-walk
        """
        if not self.root_dir.exists():
            raise InvalidPathError(self.root_dir, "Path does not exist")
        if not self.root_dir.is_dir():
            raise InvalidPathError(self.root_dir, "Not a directory")

        files: list[FileScan] = []
        parse_errors: list[str] = []

        for filepath in self._iter_source_files(cancel_event, files):
            rel_path = filepath.relative_to(self.root_dir).as_posix()
            try:
                content = filepath.read_bytes()
            except OSError as e:
                raise FileAccessError(filepath, str(e))

            parsed = self.parser.parse(rel_path, content)
            scan = analyze_source(parsed)
            if scan.has_parse_error:
                parse_errors.append(rel_path)
            files.append(scan)
            logger.debug(
                f"Scanned {rel_path}: {len(scan.imports)} imports, "
                f"{len(scan.reexports)} re-exports, {len(scan.uncertain_imports)} uncertain"
            )

        files.sort(key=lambda f: f.path)
        warnings: list[str] = []
        if not files:
            warnings.append(NO_SOURCES_WARNING)
        if parse_errors:
            warnings.append(self._parse_error_warning(sorted(parse_errors)))

        logger.info(f"Scan complete: {len(files)} files, {len(parse_errors)} with parse errors")
        return ScanResult(files=files, warnings=warnings)

    def _iter_source_files(self, cancel_event: Optional[threading.Event], scanned: list[FileScan]):
        def _raise(error: OSError) -> None:
            raise FileAccessError(Path(error.filename or self.root_dir), str(error))

        for dirpath, dirnames, filenames in os.walk(self.root_dir, onerror=_raise):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
            for name in sorted(filenames):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(f"Scan cancelled after {len(scanned)} files")
                    raise ScanCancelledError(len(scanned))
                if not is_supported_file(name):
                    continue
                yield Path(dirpath) / name

    def _parse_error_warning(self, paths: list[str]) -> str:
        samples = ", ".join(paths[: self.parse_error_sample_limit])
        return f"parse errors in {len(paths)} file(s): {samples}"


def scan_repo(
    repo_path: str | Path,
    parser: Optional[SourceParser] = None,
    cancel_event: Optional[threading.Event] = None,
    parse_error_sample_limit: int = 5,
) -> ScanResult:
    """Scan a repository; see ``RepositoryScanner.scan``."""
    scanner = RepositoryScanner(repo_path, parser=parser, parse_error_sample_limit=parse_error_sample_limit)
    return scanner.scan(cancel_event=cancel_event)
