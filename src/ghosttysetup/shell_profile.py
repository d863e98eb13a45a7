"""Lines this tool appends to shell startup files, and their removal."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Iterable
from pathlib import Path

from ghosttysetup.fs_atomic import atomic_write_text

logger = py_logging.getLogger(__name__)

ZIG_PATH_LINE = 'export PATH="$HOME/.local/zig:$PATH"'
LOCAL_BIN_PATH_LINE = 'export PATH="$HOME/.local/bin:$PATH"'
BREW_SHELLENV_LINE = 'eval "$(/opt/homebrew/bin/brew shellenv)"'

MANAGED_LINES = (ZIG_PATH_LINE, LOCAL_BIN_PATH_LINE, BREW_SHELLENV_LINE)

# Component whose removal makes the line obsolete.
LINE_OWNERS = {
    "zig": ZIG_PATH_LINE,
    "ghostty": LOCAL_BIN_PATH_LINE,
    "homebrew": BREW_SHELLENV_LINE,
}

# Profiles are user files in any encoding; undecodable bytes round-trip unchanged.
_ERRORS = "surrogateescape"


def _read(profile: Path) -> str:
    return profile.read_bytes().decode("utf-8", errors=_ERRORS)


def append_line(profile: Path, line: str) -> bool:
    """Append ``line`` unless the profile already has it. Returns True when written."""
    existing = _read(profile) if profile.exists() else ""
    if any(item.strip() == line for item in existing.splitlines()):
        logger.debug("Profile %s already contains %s", profile, line)
        return False
    if existing and not existing.endswith("\n"):
        existing += "\n"
    atomic_write_text(profile, f"{existing}{line}\n", errors=_ERRORS)
    logger.info("Added to %s: %s", profile, line)
    return True


def remove_managed_lines(profile: Path, lines: Iterable[str] = MANAGED_LINES) -> int:
    """Delete every line equal to one of ``lines``; returns how many were removed.

    Matching is textual. A user-written line identical to a managed one is
    removed as well.
    """
    targets = {item.strip() for item in lines}
    if not targets or not profile.exists():
        return 0
    original = _read(profile).splitlines(keepends=True)
    kept = [item for item in original if item.strip() not in targets]
    removed = len(original) - len(kept)
    if removed:
        atomic_write_text(profile, "".join(kept), errors=_ERRORS)
        logger.debug("Removed %s managed lines from %s", removed, profile)
    return removed
