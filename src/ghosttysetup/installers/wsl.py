"""Ghostty installation inside WSL2 with WSLg."""

from __future__ import annotations

import logging as py_logging
from pathlib import Path

from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.installers.common import (
    build_ghostty,
    confirm_reinstall,
    ensure_chafa,
    ghostty_binary,
    record_preexisting_ghostty,
    require_known_family,
)
from ghosttysetup.installers.context import InstallContext
from ghosttysetup.installers.lazygit import PPA_NAME, HttpRequester, default_requester, install_from_release
from ghosttysetup.installers.packages import WSL_BUILD_DEPENDENCIES, install_command, refresh_command
from ghosttysetup.ledger import InstallMethod, ZigInstallMethod

logger = py_logging.getLogger(__name__)

APT_SOURCES_DIR = Path("/etc/apt/sources.list.d")
BROKEN_PPA_GLOB = "lazygit-team-ubuntu-release-*.list"
SYSTEM_PREFIX = "/usr"
SYSTEM_BINARY = "/usr/bin/ghostty"


def _decline(message: str, hint: str) -> GhosttySetupError:
    return GhosttySetupError(message, code=ExitCode.FAILURE, hint=hint)


def check_wsl_requirements(context: InstallContext) -> None:
    logger.info("=== Checking WSL Requirements ===")
    wsl = context.wsl
    if not wsl.is_wsl:
        raise _decline(
            "This installer is for WSL only.",
            "You appear to be running on native Linux; use the Linux installer instead.",
        )
    logger.info("Running in WSL (version %s)", wsl.version)

    if wsl.version != "2":
        logger.warning("WSL1 detected. Ghostty requires WSL2 for GUI support.")
        logger.warning("Upgrade from PowerShell: wsl --set-version %s 2", context.environ.get("WSL_DISTRO_NAME", "<distro>"))
        if not context.prompter.confirm("Continue anyway? (not recommended)"):
            raise _decline("WSL2 is required.", "Convert the distribution to WSL2 and re-run the installer.")

    if not wsl.has_wslg:
        logger.warning("WSLg not detected. Ghostty is a GUI application and may not display.")
        logger.warning("Update Windows, then run: wsl --update && wsl --shutdown")
        if not context.prompter.confirm("Continue anyway? (not recommended)"):
            raise _decline("WSLg is required.", "Enable WSLg (wsl --update) and re-run the installer.")
    else:
        logger.info("WSLg detected (GUI support available)")


def cleanup_broken_ppas(context: InstallContext, sources_dir: Path = APT_SOURCES_DIR) -> bool:
    broken = sorted(sources_dir.glob(BROKEN_PPA_GLOB)) if sources_dir.is_dir() else []
    if not broken:
        return False
    logger.info("Removing broken lazygit PPA from previous installation attempt...")
    context.run(["sudo", "add-apt-repository", "--remove", PPA_NAME, "-y"], check=False)
    context.run(["sudo", "rm", "-f", *[str(item) for item in broken]], check=False)
    return True


def ensure_lazygit(context: InstallContext, requester: HttpRequester = default_requester) -> None:
    if context.has_command("lazygit"):
        context.record(lazygit_installed_by_script=False)
        return

    logger.info("Installing lazygit...")
    family = context.host.package_family
    if family == "apt":
        install_from_release(context, requester)
    elif family is not None:
        context.run(install_command(family, ["lazygit"]))
    else:
        logger.warning("Unknown distribution. Cannot auto-install lazygit.")
        logger.warning("Please install it manually from: https://github.com/jesseduffield/lazygit")
        context.record(lazygit_installed_by_script=False)
        return
    context.record(lazygit_installed_by_script=True)


def install_dependencies(context: InstallContext, sources_dir: Path = APT_SOURCES_DIR) -> None:
    logger.info("Installing build dependencies for WSL (%s)...", context.host.distro)
    require_known_family(context)
    family = context.host.package_family
    if family is None:
        return
    if family == "apt":
        cleanup_broken_ppas(context, sources_dir)
    refresh = refresh_command(family)
    if refresh is not None:
        context.run(refresh)
    context.run(install_command(family, WSL_BUILD_DEPENDENCIES[family], refresh=True))


def ensure_zig(context: InstallContext) -> str:
    existing = context.which("zig")
    if existing:
        logger.info("Zig is already installed: %s", existing)
        context.record(zig_installed_by_script=False, zig_install_method=ZigInstallMethod.PRE_EXISTING)
        return "zig"
    logger.info("Zig compiler not found. Installing Zig via snap...")
    context.run(["sudo", "snap", "install", "--beta", "zig", "--classic"])
    context.record(zig_installed_by_script=True, zig_install_method=ZigInstallMethod.SNAP)
    logger.info("Zig installed successfully!")
    return "zig"


def install_ghostty(context: InstallContext, zig: str, *, preexisting: bool) -> None:
    logger.info("Installing Ghostty from source...")
    build_ghostty(context, zig, "-p", SYSTEM_PREFIX, sudo=True)
    context.record(
        ghostty_installed_by_script=not preexisting,
        ghostty_install_method=InstallMethod.SOURCE,
        ghostty_binary_path=SYSTEM_BINARY,
    )
    if context.has_command("update-desktop-database"):
        context.run(["sudo", "update-desktop-database", f"{SYSTEM_PREFIX}/share/applications"], check=False)
    logger.info("Ghostty installed successfully!")


def install_wsl(
    context: InstallContext,
    *,
    requester: HttpRequester = default_requester,
    sources_dir: Path = APT_SOURCES_DIR,
) -> None:
    logger.info("=== Ghostty WSL Installation ===")
    logger.info("Distribution: %s  Architecture: %s", context.host.distro, context.host.arch)
    context.record(wsl_version=context.wsl.version, has_wslg=context.wsl.has_wslg)

    check_wsl_requirements(context)
    ensure_chafa(context)
    ensure_lazygit(context, requester)

    existing = ghostty_binary(context)
    if existing:
        logger.info("Ghostty is already installed: %s", existing)
        if not confirm_reinstall(context):
            record_preexisting_ghostty(context, existing)
            return

    install_dependencies(context, sources_dir)
    zig = ensure_zig(context)
    install_ghostty(context, zig, preexisting=existing is not None)

    logger.info("Launch Ghostty from the WSL terminal with `ghostty` or from the Windows Start Menu.")
    logger.info("Ghostty on WSL is experimental; report issues at https://github.com/ghostty-org/ghostty/issues")
