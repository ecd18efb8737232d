"""Frozen dataclasses for configuration and YAML loader with env-var interpolation."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

DEPLOYMENT_TYPES = ("bootstrap", "upgrade", "swap", "cleanup")
PROFILE_SITES = ("lms", "cms", "preview")


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class AzureConfig:
    subscription_id: str = ""
    resource_group: str = ""
    credential_type: str = "default"  # "default" uses DefaultAzureCredential


@dataclass(frozen=True)
class GatewayConfig:
    max_retries: int = 3
    retry_delay_seconds: float = 5


@dataclass(frozen=True)
class DeploymentConfig:
    cluster_name: str = ""
    deployment_type: str = "swap"
    version_id: str = ""
    profile_site: str = "lms"
    template_path: str = ""
    parameters_path: str = ""
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TeardownConfig:
    preview_exclusion_pattern: str = "preview"


@dataclass(frozen=True)
class ServiceBusConfig:
    namespace: str = ""
    queue_name: str = ""
    policy_name: str = "RootManageSharedAccessKey"
    sas_key: str = ""
    timeout: int = 30
    # Server-side wait on an empty queue; must expire before the HTTP timeout
    receive_timeout: int = 20

    @property
    def enabled(self) -> bool:
        return bool(self.namespace and self.queue_name)


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    azure: AzureConfig = field(default_factory=AzureConfig)
    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    deployment: DeploymentConfig = field(default_factory=DeploymentConfig)
    teardown: TeardownConfig = field(default_factory=TeardownConfig)
    service_bus: ServiceBusConfig = field(default_factory=ServiceBusConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in field_types:
            continue
        ft = field_types[key]
        # Resolve string annotations to actual types in the module scope
        if isinstance(ft, str):
            ft = eval(ft, globals(), {cls.__name__: cls})  # noqa: S307
        if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__") and isinstance(value, dict):
            kwargs[key] = _build_nested(ft, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    config = _build_nested(AppConfig, raw)
    _validate(config)
    return config


def _validate(config: AppConfig) -> None:
    """Validate configuration values."""
    if not config.azure.subscription_id:
        raise ConfigError("azure.subscription_id is required")

    if not config.azure.resource_group:
        raise ConfigError("azure.resource_group is required")

    if not config.deployment.cluster_name:
        raise ConfigError("deployment.cluster_name is required")

    if config.deployment.deployment_type not in DEPLOYMENT_TYPES:
        raise ConfigError(f"deployment.deployment_type must be one of {', '.join(DEPLOYMENT_TYPES)}")

    if config.deployment.profile_site not in PROFILE_SITES:
        raise ConfigError(f"deployment.profile_site must be one of {', '.join(PROFILE_SITES)}")

    if not isinstance(config.deployment.parameters, dict):
        raise ConfigError("deployment.parameters must be a mapping")

    if config.gateway.max_retries < 1:
        raise ConfigError("gateway.max_retries must be >= 1")

    if config.gateway.retry_delay_seconds < 0:
        raise ConfigError("gateway.retry_delay_seconds must be >= 0")

    try:
        re.compile(config.teardown.preview_exclusion_pattern)
    except re.error as exc:
        raise ConfigError(f"teardown.preview_exclusion_pattern is not a valid regex: {exc}") from exc

    if config.service_bus.enabled and not config.service_bus.sas_key:
        raise ConfigError("service_bus.sas_key is required when a queue is configured")

    if not 0 < config.service_bus.receive_timeout < config.service_bus.timeout:
        raise ConfigError("service_bus.receive_timeout must be positive and shorter than service_bus.timeout")

    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")
