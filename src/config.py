"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. explicit path argument
2. ./filter_engine.yaml (working directory)
3. ~/.filter_engine/config.yaml (user home)

Environment variables override YAML: FILTER_ENGINE_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

_ENV_PREFIX = "FILTER_ENGINE_"
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def resolve_env_vars(value: str) -> str:
    """Substitute ${VAR} references; unset variables become empty strings."""
    return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), value)


def _resolve_tree(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    if isinstance(data, dict):
        return {k: _resolve_tree(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_resolve_tree(v) for v in data]
    return data


class DiscoveryConfig(BaseModel):
    """Field-tree endpoint settings."""

    base_url: str = "http://127.0.0.1:3000"
    timeout_seconds: float = 30.0
    root_label: str = "Fields"


class ValueSearchConfig(BaseModel):
    """Settings for the debounced multi-value option search."""

    debounce_ms: int = 300
    limit: int = 50

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0


class TreeConfig(BaseModel):
    """Structural limits for filter trees."""

    max_depth: int = 16

    @field_validator("max_depth")
    @classmethod
    def positive_depth(cls, value: int) -> int:
        """Reject non-positive nesting limits."""
        if value < 1:
            raise ValueError("max_depth must be at least 1")
        return value


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "info"
    format: Literal["text", "verbose"] = "text"


class FilterEngineConfig(BaseModel):
    """Top-level configuration for the filter engine."""

    discovery: DiscoveryConfig = DiscoveryConfig()
    value_search: ValueSearchConfig = ValueSearchConfig()
    tree: TreeConfig = TreeConfig()
    logging: LoggingConfig = LoggingConfig()


def _find_config_file() -> Path | None:
    candidates = (
        Path.cwd() / "filter_engine.yaml",
        Path.cwd() / "filter_engine.yml",
        Path.home() / ".filter_engine" / "config.yaml",
        Path.home() / ".filter_engine" / "config.yml",
    )
    return next((c for c in candidates if c.is_file()), None)


def _coerce_env_value(value: str) -> Any:
    """Coerce an env override to int, float, bool, or keep as string."""
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply FILTER_ENGINE_<SECTION>_<KEY> env var overrides to config data.

    Matches section names by longest prefix so multi-word section names
    like ``value_search`` are handled correctly. For example,
    ``FILTER_ENGINE_VALUE_SEARCH_DEBOUNCE_MS`` maps to section
    ``value_search``, field ``debounce_ms``.

    Args:
        data: Parsed YAML config dict.

    Returns:
        Config dict with env var overrides applied.
    """
    known_sections = sorted(
        FilterEngineConfig.model_fields.keys(), key=len, reverse=True
    )
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX):
            continue
        suffix = key[len(_ENV_PREFIX):].lower()
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if not isinstance(data.get(matched_section), dict):
            data[matched_section] = {}
        data[matched_section][matched_field] = _coerce_env_value(value)
    return data


def load_config(config_path: str | None = None) -> FilterEngineConfig:
    """Load filter engine configuration from YAML with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.filter_engine/).

    Returns:
        Parsed and validated FilterEngineConfig. Defaults (plus env
        overrides) are used when no config file is found.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
    """
    raw_data: dict[str, Any] = {}
    if config_path:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    if path is not None:
        logger.info("Loading config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}

    data = _resolve_tree(raw_data)
    data = _apply_env_overrides(data)
    return FilterEngineConfig(**data)


_LOG_FORMATS = {
    "text": "%(levelname)s:%(name)s:%(message)s",
    "verbose": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
}


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure stdlib logging for the engine's loggers.

    Args:
        config: Logging settings; defaults to LoggingConfig().
    """
    config = config or LoggingConfig()
    level = getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format=_LOG_FORMATS[config.format],
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("src").setLevel(level)
