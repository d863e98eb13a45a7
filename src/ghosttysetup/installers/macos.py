"""Ghostty installation on macOS via Homebrew or a source build."""

from __future__ import annotations

import logging as py_logging
import shutil
from pathlib import Path

from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.installers.common import (
    build_ghostty,
    confirm_reinstall,
    ensure_chafa,
    ghostty_binary,
    record_preexisting_ghostty,
    require_build_output,
    zsh_profile,
)
from ghosttysetup.installers.context import InstallContext
from ghosttysetup.installers.packages import brew_install_command
from ghosttysetup.ledger import InstallMethod, ZigInstallMethod
from ghosttysetup.shell_profile import BREW_SHELLENV_LINE, append_line

logger = py_logging.getLogger(__name__)

HOMEBREW_INSTALL_SCRIPT = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
APPLE_SILICON_BREW = Path("/opt/homebrew/bin/brew")
METHOD_HOMEBREW = "1"
METHOD_SOURCE = "2"


def ghostty_app(context: InstallContext) -> Path:
    return context.applications_dir / "Ghostty.app"


def _brew(context: InstallContext) -> str:
    return context.which("brew") or str(APPLE_SILICON_BREW)


def install_homebrew(context: InstallContext) -> None:
    logger.info("Installing Homebrew...")
    context.run(["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_SCRIPT})"'])
    context.record(homebrew_installed_by_script=True)

    if not context.dry_run and APPLE_SILICON_BREW.exists():
        profile = zsh_profile(context)
        append_line(profile, BREW_SHELLENV_LINE)
        context.record(shell_profile=str(profile))


def ensure_homebrew(context: InstallContext) -> None:
    if context.has_command("brew"):
        logger.info("Homebrew is already installed.")
        context.record(homebrew_installed_by_script=False)
        return

    logger.info("Homebrew not found.")
    if not context.prompter.confirm("Install Homebrew?"):
        raise GhosttySetupError(
            "Homebrew is required for this installation method.",
            code=ExitCode.FAILURE,
            hint="Visit https://brew.sh for manual installation.",
        )
    install_homebrew(context)


def install_ghostty_homebrew(context: InstallContext, *, preexisting: bool) -> None:
    logger.info("Installing Ghostty via Homebrew...")
    brew = _brew(context)
    listed = context.run([brew, "list", "--cask", "ghostty"], capture=True, check=False)
    if listed.returncode == 0 and not context.dry_run:
        logger.info("Ghostty is already installed. Upgrading...")
        context.run([brew, "upgrade", "--cask", "ghostty"])
    else:
        context.run(brew_install_command(["ghostty"], brew=brew, cask=True))

    context.record(
        ghostty_installed_by_script=not preexisting,
        ghostty_install_method=InstallMethod.HOMEBREW,
        ghostty_binary_path=str(ghostty_app(context)),
    )
    logger.info("Ghostty installed via Homebrew!")


def install_ghostty_source(context: InstallContext, *, preexisting: bool) -> None:
    logger.info("Installing Ghostty from source...")
    brew = _brew(context)
    zig_missing = context.which("zig") is None
    logger.info("Installing build dependencies...")
    context.run(brew_install_command(["git", "zig", "pandoc"], brew=brew))
    if zig_missing:
        context.record(zig_installed_by_script=True, zig_install_method=ZigInstallMethod.HOMEBREW)
    else:
        context.record(zig_installed_by_script=False, zig_install_method=ZigInstallMethod.PRE_EXISTING)

    build_dir = build_ghostty(context, "zig")
    target = ghostty_app(context)
    logger.info("Installing Ghostty to %s...", context.applications_dir)
    if not context.dry_run:
        built = require_build_output(build_dir / "zig-out" / "bin" / "Ghostty.app")
        if target.exists():
            shutil.rmtree(target)
        shutil.copytree(built, target, symlinks=True)

    context.record(
        ghostty_installed_by_script=not preexisting,
        ghostty_install_method=InstallMethod.SOURCE,
        ghostty_binary_path=str(target),
    )
    logger.info("Ghostty installed successfully!")


def install_macos(context: InstallContext) -> None:
    logger.info("=== Ghostty macOS Installation ===")
    logger.info("Architecture: %s", context.host.arch)

    existing = ghostty_binary(context)
    preexisting = existing is not None or ghostty_app(context).is_dir()
    if preexisting:
        logger.info("Ghostty appears to be already installed.")
        if not confirm_reinstall(context):
            record_preexisting_ghostty(context, existing or str(ghostty_app(context)))
            ensure_chafa(context)
            return

    ensure_homebrew(context)
    ensure_chafa(context)

    logger.info("Installation method: 1) Homebrew (recommended)  2) Build from source")
    choice = context.prompter.choose("Choose [1-2]:", (METHOD_HOMEBREW, METHOD_SOURCE), default=METHOD_HOMEBREW)
    if choice == METHOD_SOURCE:
        install_ghostty_source(context, preexisting=preexisting)
    else:
        install_ghostty_homebrew(context, preexisting=preexisting)

    logger.info("Installation complete!")
