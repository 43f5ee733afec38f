"""Configuration system for kube-allocations.

Provides layered configuration with precedence:
1. CLI flags (highest)
2. Environment variables
3. Config file ($KUBE_ALLOCATIONS_CONFIG or ~/.kube_allocations.json)
4. Hardcoded defaults (lowest)
"""

from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from kube_allocations.aggregation import DEFAULT_GROUP_BY, GroupBy
from kube_allocations.renderers.base import OutputFormat

logger = logging.getLogger(__name__)

# Config file
CONFIG_FILE_NAME = ".kube_allocations.json"
ENV_CONFIG = "KUBE_ALLOCATIONS_CONFIG"

# Environment variable names
ENV_CONTEXT = "KUBE_ALLOCATIONS_CONTEXT"
ENV_NAMESPACE = "KUBE_ALLOCATIONS_NAMESPACE"
ENV_GROUP_BY = "KUBE_ALLOCATIONS_GROUP_BY"
ENV_RESOURCE_NAME = "KUBE_ALLOCATIONS_RESOURCE_NAME"
ENV_OUTPUT = "KUBE_ALLOCATIONS_OUTPUT"
ENV_SHOW_ZERO = "KUBE_ALLOCATIONS_SHOW_ZERO"
ENV_UTILIZATION = "KUBE_ALLOCATIONS_UTILIZATION"
ENV_KUBECTL = "KUBE_ALLOCATIONS_KUBECTL"
ENV_TIMEOUT = "KUBE_ALLOCATIONS_TIMEOUT"

# Hardcoded defaults
DEFAULT_KUBECTL = "kubectl"
DEFAULT_TIMEOUT = 30

TRUE_VALUES = ("true", "1", "yes")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


class ConfigLoadError(Exception):
    """Raised when configuration file cannot be loaded."""

    pass


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _str_list(data: dict[str, Any], name: str) -> list[str] | None:
    """A list-of-strings field; a bare string is rejected rather than split into characters."""
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigValidationError(f"{name} must be a list of strings, got {value!r}")
    return value


def _optional_str(data: dict[str, Any], name: str, default: str | None = None) -> str | None:
    value = data.get(name, default)
    if value is not None and not isinstance(value, str):
        raise ConfigValidationError(f"{name} must be a string, got {value!r}")
    return value


def _bool(data: dict[str, Any], name: str) -> bool:
    value = data.get(name, False)
    if not isinstance(value, bool):
        raise ConfigValidationError(f"{name} must be true or false, got {value!r}")
    return value


def _int(data: dict[str, Any], name: str, default: int) -> int:
    value = data.get(name, default)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigValidationError(f"{name} must be an integer, got {value!r}")
    return value


def parse_group_by(values: list[str] | tuple[str, ...]) -> list[GroupBy]:
    """Convert group-by names (case-insensitive, ``pod`` alias) to GroupBy."""
    result = []
    for value in values:
        try:
            result.append(GroupBy(value))
        except ValueError as e:
            raise ConfigValidationError(
                f"Invalid group_by '{value}'. "
                f"Valid values: {', '.join(g.value for g in GroupBy)}"
            ) from e
    return result


@dataclass
class ReportConfig:
    """Options for one allocation report."""

    context: str | None = None
    namespace: str | None = None
    group_by: list[GroupBy] = field(default_factory=lambda: list(DEFAULT_GROUP_BY))
    resource_names: list[str] = field(default_factory=list)
    output: OutputFormat = OutputFormat.TABLE
    show_zero: bool = False
    utilization: bool = False
    kubectl: str = DEFAULT_KUBECTL
    timeout: int = DEFAULT_TIMEOUT

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.group_by:
            raise ConfigValidationError("group_by must name at least one dimension")
        if len(set(self.group_by)) != len(self.group_by):
            raise ConfigValidationError(
                f"group_by contains duplicates: {', '.join(g.value for g in self.group_by)}"
            )
        if not isinstance(self.output, OutputFormat):
            raise ConfigValidationError(
                f"Invalid output '{self.output}'. "
                f"Valid values: {', '.join(o.value for o in OutputFormat)}"
            )
        if self.timeout <= 0:
            raise ConfigValidationError(
                f"timeout must be positive, got {self.timeout}"
            )

    def to_dict(self, exclude_none: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "context": self.context,
            "namespace": self.namespace,
            "group_by": [g.value for g in self.group_by],
            "resource_names": list(self.resource_names),
            "output": self.output.value,
            "show_zero": self.show_zero,
            "utilization": self.utilization,
            "kubectl": self.kubectl,
            "timeout": self.timeout,
        }
        if exclude_none:
            return {k: v for k, v in result.items() if v is not None}
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any], strict: bool = False) -> "ReportConfig":
        """Create from dictionary."""
        if strict:
            known_fields = {f.name for f in fields(cls)}
            unknown = set(data.keys()) - known_fields
            if unknown:
                raise ConfigValidationError(
                    f"Unknown fields in config: {', '.join(sorted(unknown))}"
                )

        output = data.get("output", OutputFormat.TABLE.value)
        try:
            output_format = OutputFormat(output)
        except ValueError as e:
            raise ConfigValidationError(
                f"Invalid output '{output}'. "
                f"Valid values: {', '.join(o.value for o in OutputFormat)}"
            ) from e

        group_by = _str_list(data, "group_by")
        return cls(
            context=_optional_str(data, "context"),
            namespace=_optional_str(data, "namespace"),
            group_by=parse_group_by(group_by) if group_by is not None else list(DEFAULT_GROUP_BY),
            resource_names=_str_list(data, "resource_names") or [],
            output=output_format,
            show_zero=_bool(data, "show_zero"),
            utilization=_bool(data, "utilization"),
            kubectl=_optional_str(data, "kubectl", DEFAULT_KUBECTL) or DEFAULT_KUBECTL,
            timeout=_int(data, "timeout", DEFAULT_TIMEOUT),
        )


def get_config_path() -> Path:
    """Get path to the config file ($KUBE_ALLOCATIONS_CONFIG wins)."""
    if override := os.environ.get(ENV_CONFIG):
        return Path(override)
    return Path.home() / CONFIG_FILE_NAME


def load_config_file(path: Path, strict: bool = False) -> ReportConfig:
    """Load configuration from a JSON file.

    Args:
        path: Path to config file
        strict: If True, raise on unknown fields

    Returns:
        Loaded configuration (defaults if file doesn't exist)

    Raises:
        ConfigLoadError: If file exists but cannot be parsed
        ConfigValidationError: If strict mode and validation fails
    """
    if not path.exists():
        return ReportConfig()

    try:
        content = path.read_text()
        if not content.strip():
            return ReportConfig()
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise ConfigLoadError(f"Cannot read {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Config in {path} must be a JSON object")

    logger.debug("Loaded config from %s", path)
    return ReportConfig.from_dict(data, strict=strict)


def apply_env_overrides(config: ReportConfig) -> ReportConfig:
    """Apply environment variable overrides to config.

    Raises:
        ConfigValidationError: If env var value is invalid
    """
    result = copy.deepcopy(config)

    if context := os.environ.get(ENV_CONTEXT):
        result.context = context

    if namespace := os.environ.get(ENV_NAMESPACE):
        result.namespace = namespace

    if group_by := os.environ.get(ENV_GROUP_BY):
        result.group_by = parse_group_by(_split_list(group_by))

    if resource_names := os.environ.get(ENV_RESOURCE_NAME):
        result.resource_names = _split_list(resource_names)

    if output := os.environ.get(ENV_OUTPUT):
        try:
            result.output = OutputFormat(output.lower())
        except ValueError as e:
            raise ConfigValidationError(
                f"{ENV_OUTPUT} must be one of "
                f"{', '.join(o.value for o in OutputFormat)}, got '{output}'"
            ) from e

    if show_zero := os.environ.get(ENV_SHOW_ZERO):
        result.show_zero = show_zero.lower() in TRUE_VALUES

    if utilization := os.environ.get(ENV_UTILIZATION):
        result.utilization = utilization.lower() in TRUE_VALUES

    if kubectl := os.environ.get(ENV_KUBECTL):
        result.kubectl = kubectl

    if timeout_str := os.environ.get(ENV_TIMEOUT):
        try:
            result.timeout = int(timeout_str)
        except ValueError as e:
            raise ConfigValidationError(
                f"{ENV_TIMEOUT} must be an integer, got '{timeout_str}'"
            ) from e

    return result


def apply_cli_overrides(config: ReportConfig, **options: Any) -> ReportConfig:
    """Apply CLI flags; ``None`` and empty values leave the config unchanged."""
    result = copy.deepcopy(config)
    for name, value in options.items():
        if value is None or value == () or value == []:
            continue
        if name == "group_by":
            value = parse_group_by(list(value))
        elif name == "resource_names":
            value = list(value)
        elif name == "output":
            value = OutputFormat(value)
        elif name in ("show_zero", "utilization") and not value:
            # Flags can only switch these on
            continue
        setattr(result, name, value)
    return result


def get_config(**cli_options: Any) -> ReportConfig:
    """Load and merge configuration from all sources.

    Loads in order (later sources override earlier):
    1. Hardcoded defaults
    2. Config file
    3. Environment variables
    4. CLI flags

    Returns:
        Validated, merged configuration
    """
    config = load_config_file(get_config_path())
    config = apply_env_overrides(config)
    config = apply_cli_overrides(config, **cli_options)
    config.validate()
    return config
