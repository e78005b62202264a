"""Grammar configurations for the JavaScript/TypeScript family.

Adding a dialect:
  1. Add a LanguageConfig entry to LANGUAGES below.
  2. Register its grammar loader in treesitter_parser.GRAMMAR_LOADERS.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional


@dataclass(frozen=True)
class LanguageConfig:
    """Everything the scanner needs to know about one grammar."""

    name: str
    extensions: tuple[str, ...]


LANGUAGES: dict[str, LanguageConfig] = {
    "javascript": LanguageConfig(
        name="javascript",
        extensions=(".js", ".jsx", ".mjs", ".cjs"),
    ),
    "typescript": LanguageConfig(
        name="typescript",
        extensions=(".ts", ".mts", ".cts"),
    ),
    "tsx": LanguageConfig(
        name="tsx",
        extensions=(".tsx",),
    ),
}

# Directory names never descended into during a repository walk.
SKIP_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        "node_modules",
        "dist",
        "build",
        "out",
        "coverage",
        "vendor",
        ".next",
        ".turbo",
    }
)


def get_all_known_extensions() -> set[str]:
    """Every file extension with a registered grammar."""
    exts: set[str] = set()
    for cfg in LANGUAGES.values():
        exts.update(cfg.extensions)
    return exts


def detect_language(path: str | PurePath) -> Optional[str]:
    """Grammar name for a file path, or None for unsupported extensions."""
    suffix = PurePath(path).suffix.lower()
    for cfg in LANGUAGES.values():
        if suffix in cfg.extensions:
            return cfg.name
    return None


def is_supported_file(path: str | PurePath) -> bool:
    return detect_language(path) is not None
