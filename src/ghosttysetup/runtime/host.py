"""Host operating system, distribution and architecture detection."""

from __future__ import annotations

import logging as py_logging
import platform
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ghosttysetup.errors import ExitCode, GhosttySetupError

logger = py_logging.getLogger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")
LSB_RELEASE_PATH = Path("/etc/lsb-release")

PackageFamily = Literal["apt", "dnf", "pacman"]

_FAMILIES: dict[str, PackageFamily] = {
    "ubuntu": "apt",
    "debian": "apt",
    "pop": "apt",
    "fedora": "dnf",
    "arch": "pacman",
    "manjaro": "pacman",
}


@dataclass(frozen=True)
class HostInfo:
    os: Literal["linux", "macos"]
    arch: str
    distro: str = ""
    distro_version: str = ""

    @property
    def package_family(self) -> PackageFamily | None:
        return package_family(self.distro)


def package_family(distro: str) -> PackageFamily | None:
    return _FAMILIES.get(distro.strip().lower())


def parse_release_file(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, raw = stripped.split("=", 1)
        try:
            parts = shlex.split(raw)
        except ValueError:
            parts = [raw.strip("\"'")]
        values[key.strip()] = parts[0] if parts else ""
    return values


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None


def _detect_distro(os_release_path: Path, lsb_release_path: Path) -> tuple[str, str]:
    os_release = _read(os_release_path)
    if os_release is not None:
        values = parse_release_file(os_release)
        return values.get("ID", "unknown") or "unknown", values.get("VERSION_ID", "unknown") or "unknown"

    lsb_release = _read(lsb_release_path)
    if lsb_release is not None:
        values = parse_release_file(lsb_release)
        distro = values.get("DISTRIB_ID", "").lower() or "unknown"
        return distro, values.get("DISTRIB_RELEASE", "unknown") or "unknown"

    return "unknown", "unknown"


def detect_host(
    *,
    system_name: str | None = None,
    machine: str | None = None,
    os_release_path: Path = OS_RELEASE_PATH,
    lsb_release_path: Path = LSB_RELEASE_PATH,
) -> HostInfo:
    system = system_name or platform.system()
    arch = machine or platform.machine()
    if system.startswith("Linux"):
        distro, version = _detect_distro(os_release_path, lsb_release_path)
        host = HostInfo(os="linux", arch=arch, distro=distro, distro_version=version)
    elif system.startswith("Darwin"):
        host = HostInfo(os="macos", arch=arch)
    else:
        logger.error("Unsupported operating system: %s", system)
        raise GhosttySetupError(
            f"Unsupported operating system: {system}",
            code=ExitCode.FAILURE,
            hint="Run the installer on Linux, macOS or WSL.",
        )
    logger.debug("Detected host os=%s distro=%s arch=%s", host.os, host.distro, host.arch)
    return host
