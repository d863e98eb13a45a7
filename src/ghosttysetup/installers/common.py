"""Install steps shared by the platform installers."""

from __future__ import annotations

import logging as py_logging
from pathlib import Path

from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.installers.context import InstallContext
from ghosttysetup.installers.packages import MANUAL_DEPENDENCIES, brew_install_command, install_command
from ghosttysetup.ledger import InstallMethod, Platform, ZigInstallMethod
from ghosttysetup.repository import clone_or_update
from ghosttysetup.shell_profile import ZIG_PATH_LINE, append_line

logger = py_logging.getLogger(__name__)

ZIG_DOWNLOAD_URL = "https://ziglang.org/download/{version}/zig-linux-{arch}-{version}.tar.xz"


def bash_profile(context: InstallContext) -> Path:
    return context.home / ".bashrc"


def zsh_profile(context: InstallContext) -> Path:
    return context.home / ".zprofile"


def ghostty_binary(context: InstallContext) -> str | None:
    return context.which("ghostty")


def confirm_reinstall(context: InstallContext) -> bool:
    """Ask whether an existing Ghostty should be rebuilt; never in non-interactive runs."""
    if not context.prompter.interactive:
        logger.info("Non-interactive mode: Skipping Ghostty installation.")
        return False
    if context.prompter.confirm("Reinstall/update?"):
        return True
    logger.info("Skipping Ghostty installation.")
    return False


def record_preexisting_ghostty(context: InstallContext, binary_path: str = "") -> None:
    context.record(
        ghostty_installed_by_script=False,
        ghostty_install_method=InstallMethod.PRE_EXISTING,
        ghostty_binary_path=binary_path,
    )


def require_known_family(context: InstallContext) -> None:
    """Unknown distributions need an explicit go-ahead; declining is fatal."""
    if context.host.package_family is not None:
        return
    logger.warning("Unknown distribution: %s", context.host.distro)
    logger.warning("You may need to install dependencies manually: %s", MANUAL_DEPENDENCIES)
    if not context.prompter.confirm("Continue anyway?"):
        raise GhosttySetupError(
            f"Unsupported distribution: {context.host.distro}",
            code=ExitCode.FAILURE,
            hint=f"Install {MANUAL_DEPENDENCIES} manually and re-run with --skip-install.",
        )


def ensure_chafa(context: InstallContext) -> None:
    if context.has_command("chafa"):
        logger.debug("chafa already installed")
        context.record(chafa_installed_by_script=False)
        return

    logger.info("Installing chafa for terminal graphics...")
    if context.ledger.platform is Platform.MACOS:
        if not context.has_command("brew"):
            logger.warning("Homebrew not available. Cannot auto-install chafa.")
            context.record(chafa_installed_by_script=False)
            return
        context.run(brew_install_command(["chafa"]))
        context.record(chafa_installed_by_script=True)
        return

    family = context.host.package_family
    if family is None:
        logger.warning("Unknown distribution. Cannot auto-install chafa.")
        logger.warning("Please install it manually for the welcome image to display.")
        context.record(chafa_installed_by_script=False)
        return
    context.run(install_command(family, ["chafa"]))
    context.record(chafa_installed_by_script=True)


def ensure_path_entry(context: InstallContext, directory: Path, line: str, profile: Path) -> None:
    if context.path_contains(directory):
        return
    logger.info("Adding %s to PATH in %s", directory, profile)
    if not context.dry_run:
        append_line(profile, line)
    context.record(shell_profile=str(profile))


def install_zig_tarball(context: InstallContext) -> str:
    """Download the pinned Zig release into ~/.local/zig and return the zig binary path."""
    version = context.settings.zig_version
    url = ZIG_DOWNLOAD_URL.format(version=version, arch=context.host.arch)
    local = context.home / ".local"
    zig_dir = local / "zig"
    archive = local / "zig.tar.xz"

    logger.info("Downloading Zig %s...", version)
    if not context.dry_run:
        zig_dir.mkdir(parents=True, exist_ok=True)
    context.run(["curl", "-fsSL", url, "-o", str(archive)])
    context.run(["tar", "-xf", str(archive), "-C", str(zig_dir), "--strip-components=1"])
    if not context.dry_run:
        archive.unlink(missing_ok=True)

    ensure_path_entry(context, zig_dir, ZIG_PATH_LINE, bash_profile(context))
    context.record(zig_installed_by_script=True, zig_install_method=ZigInstallMethod.TARBALL)
    logger.info("Zig installed successfully!")
    return str(zig_dir / "zig")


def checkout_ghostty_source(context: InstallContext) -> Path:
    build_dir = context.settings.build_path(context.home)
    cloned = clone_or_update(
        context.settings.ghostty_repo_url,
        build_dir,
        runner=context.runner,
        dry_run=context.dry_run,
    )
    context.record(ghostty_source_cloned_by_script=cloned)
    return build_dir


def build_ghostty(context: InstallContext, zig: str, *extra_args: str, sudo: bool = False) -> Path:
    build_dir = checkout_ghostty_source(context)
    logger.info("Building Ghostty... (this may take a few minutes)")
    command = [zig, "build", *extra_args, "-Doptimize=ReleaseFast"]
    if sudo:
        command.insert(0, "sudo")
    context.run(command, cwd=build_dir)
    return build_dir


def require_build_output(path: Path) -> Path:
    if not path.exists():
        raise GhosttySetupError(
            f"Build output not found: {path}",
            code=ExitCode.FAILURE,
            hint="Inspect the zig build output above.",
        )
    return path
