"""Installer settings loaded from an optional TOML file."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

DEFAULT_CONFIG_PATH = Path("~/.config/ghosttysetup/config.toml").expanduser()
DEFAULT_REPO_URL = "https://github.com/JussiHanski/ghostty.git"
DEFAULT_GHOSTTY_REPO_URL = "https://github.com/ghostty-org/ghostty.git"
DEFAULT_ZIG_VERSION = "0.13.0"
DEFAULT_BACKUP_KEEP = 5
REPO_URL_ENV = "GHOSTTY_SETUP_REPO_URL"

_PATH_FIELDS = ("install_dir", "config_dir", "build_dir")


class SetupConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    repo_url: str = DEFAULT_REPO_URL
    ghostty_repo_url: str = DEFAULT_GHOSTTY_REPO_URL
    install_dir: str = "~/.ghostty-config"
    config_dir: str = "~/.config/ghostty"
    build_dir: str = "~/.local/src/ghostty"
    zig_version: str = DEFAULT_ZIG_VERSION
    backup_keep: int = Field(default=DEFAULT_BACKUP_KEEP, ge=1, le=50)

    @field_validator("repo_url", "ghostty_repo_url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Repository URL must not be empty")
        return value.strip()

    def resolve_path(self, name: str, home: Path) -> Path:
        raw = str(getattr(self, name))
        if raw == "~":
            return home
        if raw.startswith("~/"):
            return home / raw[2:]
        return Path(raw)

    def install_path(self, home: Path) -> Path:
        return self.resolve_path("install_dir", home)

    def config_path(self, home: Path) -> Path:
        return self.resolve_path("config_dir", home)

    def build_path(self, home: Path) -> Path:
        return self.resolve_path("build_dir", home)


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _sanitize(raw: dict[str, object]) -> SetupConfig:
    cfg = SetupConfig()

    for name in ("repo_url", "ghostty_repo_url", "zig_version"):
        value = raw.get(name)
        if isinstance(value, str) and value.strip():
            setattr(cfg, name, value.strip())

    for name in _PATH_FIELDS:
        value = raw.get(name)
        if isinstance(value, str) and value.strip():
            setattr(cfg, name, value.strip())

    backup_keep = raw.get("backup_keep", cfg.backup_keep)
    if isinstance(backup_keep, int) and not isinstance(backup_keep, bool) and 1 <= backup_keep <= 50:
        cfg.backup_keep = backup_keep

    return cfg


def _apply_env(cfg: SetupConfig) -> SetupConfig:
    env_repo = os.getenv(REPO_URL_ENV, "").strip()
    if env_repo:
        cfg.repo_url = env_repo
    return cfg


def load_config(path: str | Path | None = None) -> SetupConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _apply_env(SetupConfig())
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _apply_env(SetupConfig())
    if not isinstance(raw, dict):
        return _apply_env(SetupConfig())
    return _apply_env(_sanitize(raw))
