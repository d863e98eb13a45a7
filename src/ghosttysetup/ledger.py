"""Install ledger: what this tool installed versus what it found on the machine.

The ledger is a line-oriented ``KEY=value`` file kept at
``~/.config/ghostty/.install_log``. In memory it is an ``InstallLedger`` model
with real booleans and enums; values are parsed when the file is loaded and
serialized when it is saved, so a malformed value is reported at load time
instead of being read as ``false``.
"""

from __future__ import annotations

import logging as py_logging
import re
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.fs_atomic import atomic_write_text

logger = py_logging.getLogger(__name__)

LEDGER_FILENAME = ".install_log"
INSTALL_DATE_FORMAT = "%Y%m%d_%H%M%S"
_INSTALL_DATE_PATTERN = re.compile(r"^\d{8}_\d{6}$")
_HEADER = (
    "# Ghostty installation log",
    "# Tracks what the installer added so uninstall only removes its own components",
)


class Platform(str, Enum):
    LINUX = "linux"
    MACOS = "macos"
    WSL = "wsl"


class InstallMethod(str, Enum):
    SOURCE = "source"
    HOMEBREW = "homebrew"
    SNAP = "snap"
    PRE_EXISTING = "pre-existing"
    NONE = "none"


class ZigInstallMethod(str, Enum):
    TARBALL = "tarball"
    SNAP = "snap"
    HOMEBREW = "homebrew"
    PRE_EXISTING = "pre-existing"
    NONE = "none"


class LedgerKey(str, Enum):
    PLATFORM = "PLATFORM"
    GHOSTTY_INSTALLED_BY_SCRIPT = "GHOSTTY_INSTALLED_BY_SCRIPT"
    GHOSTTY_INSTALL_METHOD = "GHOSTTY_INSTALL_METHOD"
    GHOSTTY_BINARY_PATH = "GHOSTTY_BINARY_PATH"
    GHOSTTY_SOURCE_CLONED_BY_SCRIPT = "GHOSTTY_SOURCE_CLONED_BY_SCRIPT"
    CHAFA_INSTALLED_BY_SCRIPT = "CHAFA_INSTALLED_BY_SCRIPT"
    LAZYGIT_INSTALLED_BY_SCRIPT = "LAZYGIT_INSTALLED_BY_SCRIPT"
    LAZYGIT_PPA_ADDED = "LAZYGIT_PPA_ADDED"
    HOMEBREW_INSTALLED_BY_SCRIPT = "HOMEBREW_INSTALLED_BY_SCRIPT"
    ZIG_INSTALLED_BY_SCRIPT = "ZIG_INSTALLED_BY_SCRIPT"
    ZIG_INSTALL_METHOD = "ZIG_INSTALL_METHOD"
    WSL_VERSION = "WSL_VERSION"
    HAS_WSLG = "HAS_WSLG"
    SHELL_PROFILE = "SHELL_PROFILE"
    INSTALL_DATE = "INSTALL_DATE"

    @property
    def field_name(self) -> str:
        return self.value.lower()


WslVersion = Literal["none", "1", "2"]

_BOOL_KEYS = frozenset(
    {
        LedgerKey.GHOSTTY_INSTALLED_BY_SCRIPT,
        LedgerKey.GHOSTTY_SOURCE_CLONED_BY_SCRIPT,
        LedgerKey.CHAFA_INSTALLED_BY_SCRIPT,
        LedgerKey.LAZYGIT_INSTALLED_BY_SCRIPT,
        LedgerKey.LAZYGIT_PPA_ADDED,
        LedgerKey.HOMEBREW_INSTALLED_BY_SCRIPT,
        LedgerKey.ZIG_INSTALLED_BY_SCRIPT,
        LedgerKey.HAS_WSLG,
    }
)
_PATH_KEYS = frozenset({LedgerKey.GHOSTTY_BINARY_PATH, LedgerKey.SHELL_PROFILE})
_ENUM_KEYS: dict[LedgerKey, type[Enum]] = {
    LedgerKey.GHOSTTY_INSTALL_METHOD: InstallMethod,
    LedgerKey.ZIG_INSTALL_METHOD: ZigInstallMethod,
}
_WSL_VERSIONS = ("none", "1", "2")


class InstallLedger(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    platform: Platform | None = None
    ghostty_installed_by_script: bool = False
    ghostty_install_method: InstallMethod = InstallMethod.NONE
    ghostty_binary_path: str = ""
    ghostty_source_cloned_by_script: bool = False
    chafa_installed_by_script: bool = False
    lazygit_installed_by_script: bool = False
    lazygit_ppa_added: bool = False
    homebrew_installed_by_script: bool = False
    zig_installed_by_script: bool = False
    zig_install_method: ZigInstallMethod = ZigInstallMethod.NONE
    wsl_version: WslVersion = "none"
    has_wslg: bool = False
    shell_profile: str = ""
    install_date: str = ""

    @field_validator("ghostty_binary_path", "shell_profile", "install_date")
    @classmethod
    def _single_line(cls, value: str) -> str:
        if "\n" in value or "\r" in value:
            raise ValueError("ledger values must fit on one line")
        return value


def _ledger_error(message: str, *, path: Path | None = None) -> GhosttySetupError:
    location = f" ({path})" if path is not None else ""
    return GhosttySetupError(
        f"Invalid install ledger{location}: {message}",
        code=ExitCode.FAILURE,
        hint="Fix the value by hand or delete the ledger file and re-run the installer.",
    )


def _coerce_key(key: LedgerKey | str) -> LedgerKey:
    if isinstance(key, LedgerKey):
        return key
    try:
        return LedgerKey(str(key).strip())
    except ValueError:
        raise ValueError(f"unknown key {key!r}") from None


def _decode(key: LedgerKey, raw: str) -> object:
    value = raw.strip()
    if "\n" in value or "\r" in value:
        raise ValueError(f"{key.value} must be a single line, got {raw!r}")
    if key in _BOOL_KEYS:
        if value == "true":
            return True
        if value == "false":
            return False
        raise ValueError(f"{key.value} must be 'true' or 'false', got {raw!r}")
    if key is LedgerKey.PLATFORM:
        if not value:
            return None
        try:
            return Platform(value)
        except ValueError:
            raise ValueError(f"unknown platform {raw!r}") from None
    if key in _ENUM_KEYS:
        enum_type = _ENUM_KEYS[key]
        try:
            return enum_type(value)
        except ValueError:
            accepted = "|".join(item.value for item in enum_type)
            raise ValueError(f"{key.value} must be one of {accepted}, got {raw!r}") from None
    if key is LedgerKey.WSL_VERSION:
        if value not in _WSL_VERSIONS:
            raise ValueError(f"WSL_VERSION must be one of none|1|2, got {raw!r}")
        return value
    if key in _PATH_KEYS:
        if value and not value.startswith("/"):
            raise ValueError(f"{key.value} must be an absolute path, got {raw!r}")
        return value
    if key is LedgerKey.INSTALL_DATE:
        if value and not _INSTALL_DATE_PATTERN.match(value):
            raise ValueError(f"INSTALL_DATE must look like YYYYMMDD_HHMMSS, got {raw!r}")
        return value
    return value


def coerce_key(key: LedgerKey | str) -> LedgerKey:
    try:
        return _coerce_key(key)
    except ValueError as exc:
        raise _ledger_error(str(exc)) from None


def decode_value(key: LedgerKey, raw: str) -> object:
    try:
        return _decode(key, raw)
    except ValueError as exc:
        raise _ledger_error(str(exc)) from None


def encode_value(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def read_entries(text: str) -> dict[str, str]:
    """Return raw ``KEY -> value`` pairs, skipping comments and malformed lines."""
    entries: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        entries[key.strip()] = value
    return entries


def parse_ledger(text: str, *, path: Path | None = None) -> InstallLedger:
    fields: dict[str, object] = {}
    seen: set[LedgerKey] = set()
    for number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            raise _ledger_error(f"line {number} is not KEY=value: {stripped!r}", path=path)
        raw_key, raw_value = stripped.split("=", 1)
        try:
            key = _coerce_key(raw_key)
            decoded = _decode(key, raw_value)
        except ValueError as exc:
            raise _ledger_error(f"line {number}: {exc}", path=path) from None
        if key in seen:
            logger.warning("Duplicate ledger key %s on line %s; last value wins", key.value, number)
        seen.add(key)
        fields[key.field_name] = decoded
    return InstallLedger(**fields)


def serialize_ledger(ledger: InstallLedger) -> str:
    lines = list(_HEADER)
    lines.append("")
    for key in LedgerKey:
        lines.append(f"{key.value}={encode_value(getattr(ledger, key.field_name))}")
    return "\n".join(lines) + "\n"


def default_ledger_path(config_dir: Path) -> Path:
    return config_dir / LEDGER_FILENAME


class LedgerStore:
    """Load/save boundary for the ledger file."""

    def __init__(self, path: str | Path, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self.path = Path(path)
        self._clock = clock

    def exists(self) -> bool:
        return self.path.is_file()

    def stamp(self) -> str:
        return self._clock().strftime(INSTALL_DATE_FORMAT)

    def initialize(self, platform: Platform | None = None) -> InstallLedger:
        ledger = InstallLedger(platform=platform, install_date=self.stamp())
        self.save(ledger)
        logger.debug("Initialized install ledger at %s", self.path)
        return ledger

    def load(self) -> InstallLedger:
        if not self.exists():
            logger.debug("No install ledger at %s; using defaults", self.path)
            return InstallLedger()
        text = self.path.read_text(encoding="utf-8")
        return parse_ledger(text, path=self.path)

    def save(self, ledger: InstallLedger) -> None:
        atomic_write_text(self.path, serialize_ledger(ledger))

    def get(self, key: LedgerKey | str) -> str:
        if not self.exists():
            return ""
        name = key.value if isinstance(key, LedgerKey) else str(key).strip()
        return read_entries(self.path.read_text(encoding="utf-8")).get(name, "")

    def set(self, key: LedgerKey | str, value: str) -> None:
        resolved = coerce_key(key)
        decoded = decode_value(resolved, value)
        ledger = self.load() if self.exists() else self.initialize()
        setattr(ledger, resolved.field_name, decoded)
        self.save(ledger)
        logger.debug("Ledger %s=%s", resolved.value, value)

    def delete(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True
