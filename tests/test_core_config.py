"""Unit tests for project paths, profiles.yaml loading and logger levels."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from allocflow.core.errors import ConfigError
from allocflow.core.logger import parse_level, set_level
from allocflow.core.profiles import ensure_work_dirs, load_profiles_section, resolve_config_path


def test_bundled_profiles_are_found(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ALLOCFLOW_CONFIG", raising=False)

    path = resolve_config_path()

    assert path.name == "profiles.yaml"
    assert path.parent.name == "config"
    assert set(load_profiles_section("backend")) >= {"default", "local"}


def test_config_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    custom = tmp_path / "custom.yaml"
    custom.write_text("import:\n  fast:\n    chunk_size: 10\n", encoding="utf-8")
    monkeypatch.setenv("ALLOCFLOW_CONFIG", str(custom))

    assert load_profiles_section("import") == {"fast": {"chunk_size": 10}}


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("- just\n- a list\n", "must contain a mapping"),
        ("backend: {}\n", "missing 'import' section"),
        ("import:\n  default: 3\n", "must be a mapping"),
        ("import: [unclosed\n", "Invalid YAML"),
    ],
)
def test_bad_profiles_raise_config_error(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "profiles.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError, match=message):
        load_profiles_section("import", path)


def test_missing_profiles_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_profiles_section("backend", tmp_path / "nope.yaml")


def test_work_dirs_are_created(tmp_path: Path) -> None:
    dirs = ensure_work_dirs()
    assert dirs["reports"] == tmp_path / "work" / "reports"
    assert dirs["logs"].is_dir() and dirs["reports"].is_dir()


def test_log_levels() -> None:
    assert parse_level("debug") == logging.DEBUG
    with pytest.raises(ValueError, match="Unknown log level"):
        parse_level("chatty")

    set_level("WARNING")
    try:
        assert logging.getLogger("allocflow").level == logging.WARNING
    finally:
        set_level("INFO")
