"""Configuration loader for the allocation system backend client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from allocflow.core.errors import ConfigError
from allocflow.core.logger import get_logger
from allocflow.core.profiles import load_profiles_section

LOGGER = get_logger()

DEFAULT_TIMEOUT = 60.0
BASE_URL_ENV = "ALLOCFLOW_API_BASE_URL"
API_TOKEN_ENV = "ALLOCFLOW_API_TOKEN"
TIMEOUT_ENV = "ALLOCFLOW_API_TIMEOUT_SEC"


@dataclass(slots=True)
class BackendConfig:
    """Resolved configuration for backend API calls."""

    base_url: str
    api_token: str | None = None
    timeout_sec: float = DEFAULT_TIMEOUT
    verify_tls: bool = True
    trust_env: bool = False
    proxies: Mapping[str, str] | None = None

    @classmethod
    def from_profile(cls, profile_name: str, *, config_path: str | Path | None = None) -> "BackendConfig":
        """Create a configuration instance from profiles.yaml.

        Args:
            profile_name: Logical profile name under the ``backend`` section.
            config_path: Optional override for the config file path.

        Returns:
            Parsed ``BackendConfig`` instance.

        Raises:
            ConfigError: If the configuration cannot be loaded or is invalid.
        """

        raw = load_profiles_section("backend", config_path).get(profile_name)
        if raw is None:
            raise ConfigError(f"backend profile '{profile_name}' not found in profiles.yaml")
        return cls.from_mapping(raw)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BackendConfig":
        """Create a configuration instance from a mapping."""

        base_url = _expand_env(data.get("base_url"))
        if not isinstance(base_url, str) or not base_url.strip():
            raise ConfigError("Missing required backend config value: base_url")

        token = _expand_env(data.get("api_token"))
        proxies_raw = data.get("proxies")
        proxies: Mapping[str, str] | None = None
        if isinstance(proxies_raw, Mapping):
            proxies = {k: _expand_env(v) for k, v in proxies_raw.items()}

        return cls(
            base_url=base_url.strip(),
            api_token=token or None,
            timeout_sec=float(data.get("timeout_sec", DEFAULT_TIMEOUT)),
            verify_tls=bool(data.get("verify_tls", True)),
            trust_env=bool(data.get("trust_env", False)),
            proxies=proxies,
        )


def _read_env(key: str) -> str | None:
    value = os.getenv(key)
    if value is None:
        return None
    return value.strip()


def _read_env_float(key: str) -> float | None:
    value = _read_env(key)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError as exc:  # noqa: BLE001 - configuration validation
        raise ConfigError(f"Environment variable {key} must be a number") from exc


def load_timeout(config: BackendConfig | None = None) -> float:
    """Return the request timeout in seconds."""

    value = _read_env_float(TIMEOUT_ENV)
    if value is not None:
        return value
    if config:
        return float(config.timeout_sec)
    return DEFAULT_TIMEOUT


def resolve_config(profile: str | None = None, *, config_path: str | Path | None = None) -> BackendConfig:
    """Resolve configuration from a profile or environment variables with overrides."""

    if profile:
        base = BackendConfig.from_profile(profile, config_path=config_path)
    else:
        base_url = _read_env(BASE_URL_ENV)
        if not base_url:
            raise ConfigError(f"Backend base URL not configured (set {BASE_URL_ENV} or pass a profile)")
        base = BackendConfig(base_url=base_url)
    return BackendConfig(
        base_url=_read_env(BASE_URL_ENV) or base.base_url,
        api_token=_read_env(API_TOKEN_ENV) or base.api_token,
        timeout_sec=load_timeout(base),
        verify_tls=base.verify_tls,
        trust_env=base.trust_env,
        proxies=base.proxies,
    )


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        expanded = os.path.expandvars(value)
        if "${" in value and "}" in value and expanded == value:
            raise ConfigError(f"Environment variable not set for value: {value}")
        return expanded
    return value


__all__ = [
    "BackendConfig",
    "API_TOKEN_ENV",
    "BASE_URL_ENV",
    "TIMEOUT_ENV",
    "load_timeout",
    "resolve_config",
]
