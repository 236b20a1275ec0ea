"""
Configuration loader for lmsbridge.

Loads and merges configuration from multiple sources:
1. Default values
2. Global config (~/.lmsbridge/config.yaml)
3. Project config (./.lmsbridge/project.yaml)
4. Environment variables (LMSBRIDGE_*)
"""

import os
import re
from pathlib import Path
from typing import Any, get_origin

import yaml
from pydantic import BaseModel, ValidationError

from lmsbridge.config.merger import deep_merge, set_nested_value
from lmsbridge.config.schema import Config
from lmsbridge.storage.paths import find_project_config, get_global_config_path

ENV_PREFIX = "LMSBRIDGE_"

# Handled outside the config tree
_RESERVED_ENV = {"LMSBRIDGE_HOME"}


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed configuration dictionary (empty if the file is missing or empty).

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")
    return content


def apply_env_overrides(config: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    ``LMSBRIDGE_<SECTION>_<KEY>=<value>`` sets ``<section>.<key>``, e.g.
    ``LMSBRIDGE_AGENT_MAX_ROUNDS=10`` sets ``agent.max_rounds``. Values for
    known fields are left for pydantic to coerce, except list fields which
    are split on commas; unknown keys are parsed with ``_parse_env_value``.

    Args:
        config: Configuration dictionary to modify.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Configuration with environment overrides applied.
    """
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX) or key in _RESERVED_ENV:
            continue

        section, sep, name = key[len(ENV_PREFIX) :].lower().partition("_")
        if not sep or not name:
            continue

        value = _coerce_env_value(value, _field_annotation(section, name))
        config = set_nested_value(config, f"{section}.{name}", value)

    return config


def _field_annotation(section: str, name: str) -> Any:
    """Annotation of ``<section>.<name>`` in the Config schema, or None."""
    section_field = Config.model_fields.get(section)
    if section_field is None:
        return None
    model = section_field.annotation
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        return None
    field = model.model_fields.get(name)
    return field.annotation if field is not None else None


def _coerce_env_value(value: str, annotation: Any) -> Any:
    if annotation is None:
        return _parse_env_value(value)
    if get_origin(annotation) in (list, tuple):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable value to bool, int, float, list or str."""
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    if re.match(r"^-?\d+$", value):
        return int(value)

    if re.match(r"^-?\d+\.\d+$", value):
        return float(value)

    # List (comma-separated)
    if "," in value:
        return [item.strip() for item in value.split(",")]

    return value


def load_config(
    project_path: Path | None = None,
    skip_project: bool = False,
    skip_env: bool = False,
) -> Config:
    """
    Load and merge configuration from all sources.

    Loading order (later overrides earlier):
    1. Default values from Config model
    2. Global config (~/.lmsbridge/config.yaml)
    3. Project config (./.lmsbridge/project.yaml) if found
    4. Environment variables (LMSBRIDGE_*)

    Args:
        project_path: Starting path to search for project config. Defaults to cwd.
        skip_project: Skip loading project configuration.
        skip_env: Skip environment variable overrides.

    Returns:
        Merged and validated Config object.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    config_dict = Config().model_dump()

    global_path = get_global_config_path()
    if global_path.exists():
        config_dict = deep_merge(config_dict, load_yaml_file(global_path))

    if not skip_project:
        project_config_path = find_project_config(project_path)
        if project_config_path:
            config_dict = deep_merge(config_dict, load_yaml_file(project_config_path))

    if not skip_env:
        config_dict = apply_env_overrides(config_dict)

    try:
        return Config.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


# Singleton for cached config
_cached_config: Config | None = None


def get_config(reload: bool = False) -> Config:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload configuration from disk.

    Returns:
        Config instance.
    """
    global _cached_config

    if _cached_config is None or reload:
        _cached_config = load_config()

    return _cached_config


def clear_config_cache() -> None:
    """Clear the cached configuration."""
    global _cached_config
    _cached_config = None
