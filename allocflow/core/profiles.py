"""Project paths and ``profiles.yaml`` access."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .errors import ConfigError


load_dotenv(override=False)

ROOT_ENV = "ALLOCFLOW_ROOT"
WORK_DIR_ENV = "ALLOCFLOW_WORK_DIR"
CONFIG_ENV = "ALLOCFLOW_CONFIG"
DEFAULT_CONFIG_NAME = "profiles.yaml"


def _project_root() -> Path:
    env = os.getenv(ROOT_ENV)
    if env:
        return Path(env).expanduser()
    # In source layout, this file is under <root>/allocflow/core
    return Path(__file__).resolve().parents[2]


def _config_dir() -> Path:
    return Path(__file__).resolve().parents[1] / "config"


def _work_dir() -> Path:
    env = os.getenv(WORK_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return _project_root() / "allocflow" / "work"


def ensure_work_dirs() -> dict[str, Path]:
    """Create and return the runtime directories (``logs`` and ``reports``)."""

    base = _work_dir()
    dirs = {"logs": base / "logs", "reports": base / "reports"}
    for path in dirs.values():
        path.mkdir(parents=True, exist_ok=True)
    return dirs


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Locate a config file.

    Absolute paths are used as-is; relative ones are looked up in the bundled
    ``allocflow/config`` directory. Without a path, ``ALLOCFLOW_CONFIG`` or
    the bundled ``profiles.yaml`` is used.
    """

    if path is None:
        env = os.getenv(CONFIG_ENV)
        if env:
            return Path(env).expanduser()
        path = DEFAULT_CONFIG_NAME
    p = Path(path)
    if p.is_absolute():
        return p
    return _config_dir() / p


def load_profiles_section(section: str, path: str | Path | None = None) -> dict[str, Mapping[str, Any]]:
    """Load one top-level section of profiles.yaml.

    Returns a dict of profile-key -> raw mapping.
    """
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        raise ConfigError(f"profiles.yaml not found at {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {cfg_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("profiles.yaml must contain a mapping")
    raw = data.get(section)
    if not isinstance(raw, Mapping) or not raw:
        raise ConfigError(f"profiles.yaml missing '{section}' section")
    profiles: dict[str, Mapping[str, Any]] = {}
    for key, value in raw.items():
        if not isinstance(value, Mapping):
            raise ConfigError(f"profile {section}.{key} must be a mapping")
        profiles[str(key)] = value
    return profiles


__all__ = [
    "CONFIG_ENV",
    "ROOT_ENV",
    "WORK_DIR_ENV",
    "ensure_work_dirs",
    "load_profiles_section",
    "resolve_config_path",
]
