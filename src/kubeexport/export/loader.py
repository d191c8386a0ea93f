"""YAML configuration loader for export runs.

Provides functionality to load and validate export configurations from YAML files,
with support for environment variable substitution and comprehensive error reporting.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_yaml import parse_yaml_raw_as

from kubeexport.export.config import ExportConfig


class ConfigLoadError(Exception):
    """Raised when configuration loading or validation fails."""


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute_env_vars(data: Any) -> Any:
    """Recursively substitute environment variables in configuration data.

    Replaces ${VAR_NAME} patterns with environment variable values.

    Args:
        data: Configuration data structure (dict, list, str, or primitive)

    Returns:
        Configuration data with environment variables substituted

    Raises:
        ConfigLoadError: If a referenced environment variable is not defined
    """
    if isinstance(data, dict):
        return {key: substitute_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [substitute_env_vars(item) for item in data]
    if isinstance(data, str):
        result = data
        for var_name in _ENV_VAR_PATTERN.findall(data):
            if var_name not in os.environ:
                raise ConfigLoadError(
                    f"Environment variable '${{{var_name}}}' referenced in configuration "
                    f"but not defined in environment"
                )
            result = result.replace(f"${{{var_name}}}", os.environ[var_name])
        return result
    return data


def load_export_config(config_path: str | Path) -> ExportConfig:
    """Load and validate an export configuration from a YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated ExportConfig instance

    Raises:
        ConfigLoadError: If file not found, invalid YAML, validation fails,
            or environment variables are missing
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigLoadError(f"Configuration file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Configuration path is not a file: {config_path}")

    try:
        raw_data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        if raw_data is None:
            raw_data = {}
        if not isinstance(raw_data, dict):
            raise ConfigLoadError(
                f"Configuration in {config_path} must be a mapping, got {type(raw_data).__name__}"
            )

        processed_yaml = yaml.safe_dump(substitute_env_vars(raw_data))

        return parse_yaml_raw_as(ExportConfig, processed_yaml)

    except ConfigLoadError:
        raise

    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Invalid YAML syntax in {config_path}: {e}") from e

    except ValidationError as e:
        errors = []
        for error in e.errors():
            location = " -> ".join(str(loc) for loc in error["loc"])
            errors.append(f"  • {location}: {error['msg']}")

        error_details = "\n".join(errors)
        raise ConfigLoadError(
            f"Configuration validation failed in {config_path}:\n{error_details}"
        ) from e

    except Exception as e:
        raise ConfigLoadError(f"Failed to load configuration from {config_path}: {e}") from e


def validate_config(config: ExportConfig) -> list[str]:
    """Validate configuration for common issues and return warnings.

    Checks for settings that are valid but likely to surprise:
    - Exclusions that have no effect because explicit types are given
    - Types that are both requested and excluded
    - An output root that would make the run fail, or that force would wipe

    Args:
        config: Validated ExportConfig instance

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    if config.resource_types:
        both = sorted(set(config.resource_types) & set(config.excluded_resource_types))
        if both:
            warnings.append(
                f"Resource types {', '.join(both)} are both requested and excluded - "
                f"exclusions only apply to discovered types, so they will be exported"
            )

    output_dir = config.output.dir
    if output_dir.exists():
        if not output_dir.is_dir():
            warnings.append(f"Output path '{output_dir}' exists and is not a directory")
        elif any(output_dir.iterdir()) and not config.output.force:
            warnings.append(
                f"Output directory '{output_dir}' is not empty and force is disabled - "
                f"the export will refuse to run"
            )

    if config.output.force:
        resolved = output_dir.resolve()
        if resolved == Path.cwd().resolve() or resolved in Path.cwd().resolve().parents:
            warnings.append(
                f"Output directory '{output_dir}' contains the working directory and "
                f"force is enabled - it will be deleted"
            )

    return warnings
