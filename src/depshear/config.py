"""Configuration loading and management for depshear.

Configuration sources are merged in priority order:
    1. Defaults (defined in AnalysisConfig)
    2. Global config (~/.depshear.toml)
    3. Project config (./depshear.toml)
    4. Explicit config file
    5. Environment variables (DEPSHEAR_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(runtime_profile="browser-import")
    >>> config.runtime_profile
    'browser-import'
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

GLOBAL_CONFIG_NAME = ".depshear.toml"
PROJECT_CONFIG_NAME = "depshear.toml"
ENV_PREFIX = "DEPSHEAR_"


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for one analysis run.

    Attributes:
        Export surface:
            runtime_profile: Condition profile used to read package "exports"
                maps. Unknown names fall back to node-import with a warning.

        Recommendations and gates:
            min_usage_percent_for_recommendations: Below this used-export
                percentage a root-only import earns a subpath recommendation
            max_uncertain_import_count: Fail the run when more imports than
                this are dynamic (0 disables the gate)

        Report shape:
            top_symbols_limit: Number of most used symbols kept per dependency
            parse_error_sample_limit: Files named in the parse error warning

        Removal-candidate weights (normalised to sum 1.0):
            removal_weight_usage: Weight of unused-export share
            removal_weight_impact: Weight of unused-export volume
            removal_weight_confidence: Weight of static-analysis confidence

        Output control:
            verbosity: Logging verbosity level
    """

    runtime_profile: str = "node-import"

    min_usage_percent_for_recommendations: int = 40
    max_uncertain_import_count: int = 0

    top_symbols_limit: int = 5
    parse_error_sample_limit: int = 5

    removal_weight_usage: float = 0.50
    removal_weight_impact: float = 0.30
    removal_weight_confidence: float = 0.20

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.runtime_profile.strip():
            raise ValueError("runtime_profile must not be empty")

        if not 0 <= self.min_usage_percent_for_recommendations <= 100:
            raise ValueError("min_usage_percent_for_recommendations must be between 0 and 100")
        if self.max_uncertain_import_count < 0:
            raise ValueError("max_uncertain_import_count must be non-negative")

        if self.top_symbols_limit < 1:
            raise ValueError("top_symbols_limit must be at least 1")
        if self.parse_error_sample_limit < 1:
            raise ValueError("parse_error_sample_limit must be at least 1")

        weights = self.removal_weights
        if any(w < 0 or math.isnan(w) or math.isinf(w) for w in weights):
            raise ValueError("removal weights must be finite and non-negative")
        if sum(weights) <= 0:
            raise ValueError("removal weights must not all be zero")

        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be one of: quiet, normal, verbose")

    @property
    def removal_weights(self) -> tuple[float, float, float]:
        """Raw (usage, impact, confidence) weights."""
        return (
            self.removal_weight_usage,
            self.removal_weight_impact,
            self.removal_weight_confidence,
        )


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalysisConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options do not mask file values.

    Returns:
        Validated AnalysisConfig instance

    Raises:
        ConfigurationError: If a config file is missing or unreadable
        InvalidConfigError: If a value fails validation
    """
    merged: dict = {}

    global_config = Path.home() / GLOBAL_CONFIG_NAME
    if global_config.exists():
        merged.update(_load_config_file(global_config, "global"))

    project_config = Path.cwd() / PROJECT_CONFIG_NAME
    if project_config.exists():
        merged.update(_load_config_file(project_config, "project"))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_config_file(config_file, "explicit"))

    merged.update(_load_env_vars())

    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update(overrides)

    unknown = sorted(set(merged) - set(AnalysisConfig.__dataclass_fields__))
    if unknown:
        raise InvalidConfigError(unknown[0], merged[unknown[0]], "unknown configuration key")

    try:
        return AnalysisConfig(**merged)
    except ValueError as e:
        raise InvalidConfigError("config", merged, str(e))


def _load_config_file(path: Path, label: str) -> dict:
    """Read one TOML file, accepting either top-level keys or a [depshear] table."""
    try:
        data = _load_toml_file(path)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Invalid {label} config '{path}': {e}")
    section = data.get("depshear")
    if isinstance(section, dict):
        return dict(section)
    return data


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from DEPSHEAR_* environment variables.

    Every AnalysisConfig field maps to ``DEPSHEAR_<FIELD_NAME>``, e.g.
    ``DEPSHEAR_RUNTIME_PROFILE`` or ``DEPSHEAR_MAX_UNCERTAIN_IMPORT_COUNT``.

    Returns:
        Dict of field_name -> parsed_value for any DEPSHEAR_* vars found.
    """
    type_hints = get_type_hints(AnalysisConfig)

    result: dict[str, Any] = {}

    for field_name in AnalysisConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        import tomllib
    except ModuleNotFoundError:
        # Python 3.9-3.10
        import tomli as tomllib  # type: ignore

    with open(path, "rb") as f:
        return tomllib.load(f)
