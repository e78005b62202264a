"""Suggest-only codemod: rewrite root imports of a dependency to subpath imports.

``import { map } from "lodash"`` becomes ``import map from "lodash/map"``
when the package ships a deterministic ``lodash/map`` target. Nothing is
written to disk; each suggestion carries a single-line unified patch.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from ..exceptions import ManifestError
from ..logging_config import get_logger
from ..models import CodemodReport, CodemodSkip, CodemodSuggestion
from ..scanning import DEFAULT_EXPORT, WILDCARD, FileScan, ImportBinding, ImportKind, ScanResult
from .manifest import ExportsObject, load_manifest

logger = get_logger(__name__)

CODEMOD_MODE_SUGGEST_ONLY = "suggest-only"

REASON_SIDE_EFFECT_IMPORT = "side-effect-import"
REASON_NAMESPACE_IMPORT = "namespace-import"
REASON_DEFAULT_IMPORT = "default-import"
REASON_ALIAS_CONFLICT = "alias-conflict"
REASON_UNUSED_IMPORT = "unused-import"
REASON_NO_SUBPATH_TARGET = "no-subpath-target"
REASON_UNSUPPORTED_SYNTAX = "unsupported-import-syntax"

IMPORT_STATEMENT_PATTERN = re.compile(
    r"""^(\s*)import\s+\{\s*([A-Za-z_$][A-Za-z0-9_$]*)\s*\}\s+from\s+(["'])([^"']+)(["'])(\s*;?\s*)$"""
)
REQUIRE_STATEMENT_PATTERN = re.compile(
    r"""^(\s*)(const|let|var)\s+\{\s*([A-Za-z_$][A-Za-z0-9_$]*)\s*\}\s*=\s*require\((["'])([^"']+)(["'])\)(\s*;?\s*)$"""
)

SUBPATH_FILE_SUFFIXES = ("", ".js", ".mjs", ".cjs", ".ts", ".mts", ".cts", "/index.js", "/index.mjs", "/index.cjs")


class SubpathResolver:
    """Finds a ``<dependency>/<export>`` module for a named export."""

    def __init__(self, dependency_root: Optional[str | Path]):
        self.dependency_root = Path(dependency_root) if dependency_root else None
        self.known_subpaths = self._load_known_subpaths()

    def _load_known_subpaths(self) -> set[str]:
        if self.dependency_root is None:
            return set()
        try:
            manifest = load_manifest(self.dependency_root)
        except ManifestError:
            return set()
        if not isinstance(manifest.exports, ExportsObject):
            return set()
        subpaths = set()
        for key in manifest.exports.keys():
            if not key.startswith("./"):
                continue
            subpath = key[2:]
            if subpath and "*" not in subpath:
                subpaths.add(subpath)
        return subpaths

    def resolve(self, dependency: str, export_name: str) -> Optional[str]:
        export_name = export_name.strip()
        if not export_name or export_name in (DEFAULT_EXPORT, WILDCARD) or " " in export_name:
            return None
        target = f"{dependency}/{export_name}"
        if export_name in self.known_subpaths:
            return target
        if self.dependency_root is None:
            return None
        for suffix in SUBPATH_FILE_SUFFIXES:
            if (self.dependency_root / (export_name + suffix)).is_file():
                return target
        return None


def skip_reason(binding: ImportBinding, file: FileScan) -> Optional[tuple[str, str]]:
    """(reason code, message) when ``binding`` must not be rewritten."""
    if binding.kind is ImportKind.NAMESPACE:
        if binding.is_side_effect:
            return REASON_SIDE_EFFECT_IMPORT, "side-effect imports are not safe to rewrite automatically"
        return REASON_NAMESPACE_IMPORT, "namespace imports are not safe to rewrite automatically"
    if binding.kind is ImportKind.DEFAULT:
        return REASON_DEFAULT_IMPORT, "default imports are not rewritten in this codemod mode"
    if binding.local_name != binding.export_name:
        return REASON_ALIAS_CONFLICT, "aliased imports are skipped to avoid local-name conflicts"
    if file.identifier_usage.get(binding.local_name, 0) <= 0:
        return REASON_UNUSED_IMPORT, "unused imports are skipped"
    return None


def rewrite_import_line(line: str, dependency: str, export_name: str, target: str) -> Optional[str]:
    """Rewrite a single-binding import/require line, or None if it is not one."""
    match = IMPORT_STATEMENT_PATTERN.match(line)
    if match:
        indent, name, open_quote, module, close_quote, tail = match.groups()
        if name != export_name or module != dependency or open_quote != close_quote:
            return None
        return f"{indent}import {export_name} from {open_quote}{target}{open_quote}{tail}"

    match = REQUIRE_STATEMENT_PATTERN.match(line)
    if match:
        indent, keyword, name, open_quote, module, close_quote, tail = match.groups()
        if name != export_name or module != dependency or open_quote != close_quote:
            return None
        return f"{indent}{keyword} {export_name} = require({open_quote}{target}{open_quote}){tail}"
    return None


def single_line_patch(file: str, line: int, old: str, new: str) -> str:
    return "\n".join([f"--- a/{file}", f"+++ b/{file}", f"@@ -{line} +{line} @@", f"-{old}", f"+{new}"])


class CodemodBuilder:
    """Builds the suggest-only codemod report for one dependency."""

    def __init__(self, repo_path: str | Path, dependency: str, dependency_root: Optional[str | Path]):
        self.repo_path = Path(repo_path)
        self.dependency = dependency
        self.resolver = SubpathResolver(dependency_root)
        self._lines: dict[str, list[str]] = {}

    def build(self, scan: ScanResult) -> tuple[CodemodReport, list[str]]:
        suggestions: list[CodemodSuggestion] = []
        skips: list[CodemodSkip] = []
        warnings: set[str] = set()

        for file in scan.files:
            for binding in file.imports:
                if binding.module != self.dependency:
                    continue
                try:
                    outcome = self._outcome(file, binding)
                except OSError as e:
                    warnings.add(f"codemod preview skipped for {file.path}: {e}")
                    logger.debug(f"Codemod could not read {file.path}: {e}")
                    break
                if isinstance(outcome, CodemodSkip):
                    skips.append(outcome)
                elif outcome is not None:
                    suggestions.append(outcome)

        suggestions.sort(key=lambda s: (s.file, s.line, s.import_name, s.to_module))
        skips.sort(key=lambda s: (s.file, s.line, s.reason_code, s.import_name))
        report = CodemodReport(mode=CODEMOD_MODE_SUGGEST_ONLY, suggestions=suggestions, skips=skips)
        return report, sorted(warnings)

    def _outcome(self, file: FileScan, binding: ImportBinding):
        reason = skip_reason(binding, file)
        if reason is not None:
            return self._skip(file, binding, *reason)

        target = self.resolver.resolve(self.dependency, binding.export_name)
        if target is None:
            return self._skip(
                file, binding, REASON_NO_SUBPATH_TARGET, "no deterministic subpath target was found for this export"
            )

        lines = self._source_lines(file.path)
        line_no = binding.location.line
        if line_no <= 0 or line_no > len(lines):
            return self._skip(
                file, binding, REASON_UNSUPPORTED_SYNTAX, "unable to map import location to source line"
            )

        original = lines[line_no - 1]
        replacement = rewrite_import_line(original, self.dependency, binding.export_name, target)
        if replacement is None:
            return self._skip(
                file, binding, REASON_UNSUPPORTED_SYNTAX, "import statement is not in a supported single-binding form"
            )
        if replacement == original:
            return None

        return CodemodSuggestion(
            file=file.path,
            line=line_no,
            import_name=binding.export_name,
            from_module=self.dependency,
            to_module=target,
            original=original,
            replacement=replacement,
            patch=single_line_patch(file.path, line_no, original, replacement),
        )

    def _skip(self, file: FileScan, binding: ImportBinding, reason_code: str, message: str) -> CodemodSkip:
        return CodemodSkip(
            file=file.path,
            line=binding.location.line,
            import_name=binding.export_name,
            module=binding.module,
            reason_code=reason_code,
            message=message,
        )

    def _source_lines(self, path: str) -> list[str]:
        if path not in self._lines:
            text = (self.repo_path / path).read_text(encoding="utf-8", errors="replace")
            self._lines[path] = text.replace("\r\n", "\n").split("\n")
        return self._lines[path]


def build_subpath_codemod(
    repo_path: str | Path,
    dependency: str,
    dependency_root: Optional[str | Path],
    scan: ScanResult,
) -> tuple[CodemodReport, list[str]]:
    """Suggest subpath rewrites for root imports of ``dependency``.

    Returns:
        (codemod report, warnings for files that could not be read)
    """
    return CodemodBuilder(repo_path, dependency, dependency_root).build(scan)
