"""Package manager command matrix per distribution family."""

from __future__ import annotations

from collections.abc import Sequence

from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.runtime.host import PackageFamily

BUILD_DEPENDENCIES: dict[PackageFamily, tuple[str, ...]] = {
    "apt": ("git", "build-essential", "libgtk-4-dev", "libadwaita-1-dev", "pkg-config", "pandoc", "chafa"),
    "dnf": ("git", "gcc", "gcc-c++", "gtk4-devel", "libadwaita-devel", "pkgconfig", "pandoc", "chafa"),
    "pacman": ("git", "base-devel", "gtk4", "libadwaita", "pkgconf", "pandoc", "chafa"),
}

# WSL images ship most toolchain packages; apt only needs the GTK headers.
WSL_BUILD_DEPENDENCIES: dict[PackageFamily, tuple[str, ...]] = {
    "apt": ("libgtk-4-dev", "libadwaita-1-dev", "blueprint-compiler"),
    "dnf": BUILD_DEPENDENCIES["dnf"] + ("lazygit",),
    "pacman": BUILD_DEPENDENCIES["pacman"] + ("lazygit",),
}

MANUAL_DEPENDENCIES = "git, build tools, gtk4, libadwaita, pkg-config, pandoc, chafa"


def _unknown_family() -> GhosttySetupError:
    return GhosttySetupError(
        "Unsupported distribution for automatic package management.",
        code=ExitCode.FAILURE,
        hint=f"Install the required packages manually: {MANUAL_DEPENDENCIES}.",
    )


def refresh_command(family: PackageFamily | None) -> list[str] | None:
    if family == "apt":
        return ["sudo", "apt-get", "update"]
    return None


def install_command(family: PackageFamily | None, packages: Sequence[str], *, refresh: bool = False) -> list[str]:
    if family == "apt":
        return ["sudo", "apt-get", "install", "-y", *packages]
    if family == "dnf":
        return ["sudo", "dnf", "install", "-y", *packages]
    if family == "pacman":
        sync = "-Sy" if refresh else "-S"
        return ["sudo", "pacman", sync, "--needed", "--noconfirm", *packages]
    raise _unknown_family()


def remove_command(family: PackageFamily | None, packages: Sequence[str]) -> list[str]:
    if family == "apt":
        return ["sudo", "apt-get", "remove", "-y", *packages]
    if family == "dnf":
        return ["sudo", "dnf", "remove", "-y", *packages]
    if family == "pacman":
        return ["sudo", "pacman", "-R", "--noconfirm", *packages]
    raise _unknown_family()


def brew_install_command(packages: Sequence[str], *, brew: str = "brew", cask: bool = False) -> list[str]:
    return [brew, "install", *(["--cask"] if cask else []), *packages]


def brew_uninstall_command(packages: Sequence[str], *, brew: str = "brew", cask: bool = False) -> list[str]:
    return [brew, "uninstall", *(["--cask"] if cask else []), *packages]
