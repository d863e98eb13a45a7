"""Ghostty installation on native Linux: build from source with a user-local Zig."""

from __future__ import annotations

import logging as py_logging
import shutil

from ghosttysetup.installers.common import (
    bash_profile,
    build_ghostty,
    confirm_reinstall,
    ensure_chafa,
    ensure_path_entry,
    ghostty_binary,
    install_zig_tarball,
    record_preexisting_ghostty,
    require_build_output,
    require_known_family,
)
from ghosttysetup.installers.context import InstallContext
from ghosttysetup.installers.packages import BUILD_DEPENDENCIES, install_command, refresh_command
from ghosttysetup.ledger import InstallMethod, ZigInstallMethod
from ghosttysetup.shell_profile import LOCAL_BIN_PATH_LINE

logger = py_logging.getLogger(__name__)

DESKTOP_FILE_SOURCE = "src/apprt/gtk/ghostty.desktop"


def install_dependencies(context: InstallContext) -> None:
    logger.info("Installing build dependencies for %s...", context.host.distro)
    require_known_family(context)
    family = context.host.package_family
    if family is None:
        return
    refresh = refresh_command(family)
    if refresh is not None:
        context.run(refresh)
    context.run(install_command(family, BUILD_DEPENDENCIES[family], refresh=True))


def ensure_zig(context: InstallContext) -> str:
    existing = context.which("zig")
    if existing:
        logger.info("Zig is already installed: %s", existing)
        context.record(zig_installed_by_script=False, zig_install_method=ZigInstallMethod.PRE_EXISTING)
        return "zig"
    logger.info("Zig compiler not found. Installing Zig...")
    return install_zig_tarball(context)


def install_ghostty(context: InstallContext, zig: str, *, preexisting: bool) -> None:
    logger.info("Installing Ghostty from source...")
    build_dir = build_ghostty(context, zig)

    bin_dir = context.home / ".local" / "bin"
    target = bin_dir / "ghostty"
    applications = context.home / ".local" / "share" / "applications"
    if not context.dry_run:
        built = require_build_output(build_dir / "zig-out" / "bin" / "ghostty")
        bin_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(built, target)

        desktop_source = build_dir / DESKTOP_FILE_SOURCE
        if desktop_source.is_file():
            applications.mkdir(parents=True, exist_ok=True)
            content = desktop_source.read_text(encoding="utf-8")
            (applications / "ghostty.desktop").write_text(
                content.replace("Exec=ghostty", f"Exec={target}"),
                encoding="utf-8",
            )

    ensure_path_entry(context, bin_dir, LOCAL_BIN_PATH_LINE, bash_profile(context))
    context.record(
        ghostty_installed_by_script=not preexisting,
        ghostty_install_method=InstallMethod.SOURCE,
        ghostty_binary_path=str(target),
    )
    logger.info("Ghostty installed successfully!")


def install_linux(context: InstallContext) -> None:
    logger.info("=== Ghostty Linux Installation ===")
    logger.info("Distribution: %s  Architecture: %s", context.host.distro, context.host.arch)

    ensure_chafa(context)

    existing = ghostty_binary(context)
    if existing:
        logger.info("Ghostty is already installed: %s", existing)
        if not confirm_reinstall(context):
            record_preexisting_ghostty(context, existing)
            return

    install_dependencies(context)
    zig = ensure_zig(context)
    install_ghostty(context, zig, preexisting=existing is not None)

    logger.info("Installation complete! You may need to restart your shell or run: source ~/.bashrc")
