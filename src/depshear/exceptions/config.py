"""Configuration exceptions: paths, settings, dependency names."""

from pathlib import Path
from typing import Any

from .base import DepshearError


class ConfigurationError(DepshearError):
    """Base class for configuration-related errors."""

    pass


class InvalidPathError(ConfigurationError):
    """Raised when a provided path is invalid."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class InvalidDependencyError(ConfigurationError):
    """Raised when a dependency name cannot map to a node_modules path."""

    def __init__(self, dependency: str, reason: str):
        super().__init__(
            f"Invalid dependency name: {dependency!r}",
            details={"dependency": dependency, "reason": reason},
        )
        self.dependency = dependency
        self.reason = reason
