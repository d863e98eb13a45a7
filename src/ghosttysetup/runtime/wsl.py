"""WSL and WSLg detection."""

from __future__ import annotations

import logging as py_logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ghosttysetup.ledger import Platform
from ghosttysetup.runtime.host import HostInfo

logger = py_logging.getLogger(__name__)

KERNEL_OSRELEASE_PATH = Path("/proc/sys/kernel/osrelease")
PROC_VERSION_PATH = Path("/proc/version")
WSLG_PATHS = (Path("/mnt/wslg/runtime-dir/wayland-0"), Path("/mnt/wslg"))


@dataclass(frozen=True)
class WslInfo:
    is_wsl: bool = False
    version: Literal["none", "1", "2"] = "none"
    has_wslg: bool = False


def _read_lower(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace").lower()
    except OSError:
        return ""


def detect_wsl(
    *,
    environ: Mapping[str, str] | None = None,
    osrelease_path: Path = KERNEL_OSRELEASE_PATH,
    version_path: Path = PROC_VERSION_PATH,
    wslg_paths: Sequence[Path] = WSLG_PATHS,
) -> WslInfo:
    env = os.environ if environ is None else environ
    proc_version = _read_lower(version_path)

    is_wsl = (
        "microsoft" in _read_lower(osrelease_path)
        or "microsoft" in proc_version
        or bool(env.get("WSL_DISTRO_NAME"))
    )
    if not is_wsl:
        return WslInfo()

    version: Literal["1", "2"] = "2" if ("wsl2" in proc_version or "microsoft-standard" in proc_version) else "1"
    has_wslg = False
    if version == "2":
        if env.get("WAYLAND_DISPLAY") or any(path.exists() for path in wslg_paths):
            has_wslg = True
        if ":0" in env.get("DISPLAY", ""):
            has_wslg = True

    logger.debug("Detected WSL version=%s wslg=%s", version, has_wslg)
    return WslInfo(is_wsl=True, version=version, has_wslg=has_wslg)


def resolve_platform(host: HostInfo, wsl: WslInfo) -> Platform:
    if host.os == "macos":
        return Platform.MACOS
    if wsl.is_wsl:
        return Platform.WSL
    return Platform.LINUX
