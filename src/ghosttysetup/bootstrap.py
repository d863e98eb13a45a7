"""End-to-end install and uninstall flows."""

from __future__ import annotations

import logging as py_logging
import os
import shutil
import subprocess
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ghosttysetup.backup import backup_config
from ghosttysetup.config import SetupConfig
from ghosttysetup.deploy import deploy_config, describe_deployment, verify_installation
from ghosttysetup.installers import INSTALLERS
from ghosttysetup.installers.context import APPLICATIONS_DIR, InstallContext
from ghosttysetup.ledger import InstallLedger, LedgerStore, Platform, default_ledger_path
from ghosttysetup.prompts import ConsolePrompter, Prompter
from ghosttysetup.repository import clone_or_update
from ghosttysetup.runtime.host import HostInfo, detect_host
from ghosttysetup.runtime.process import SubprocessRunner
from ghosttysetup.runtime.wsl import WslInfo, detect_wsl, resolve_platform
from ghosttysetup.uninstall import UninstallReport, uninstall
from ghosttysetup.welcome import WELCOME_IMAGE_NAME, show_welcome

logger = py_logging.getLogger(__name__)

CONFIG_SOURCE_DIRNAME = "config"


class BootstrapRequest(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    home: Path = Field(default_factory=Path.home)
    settings: SetupConfig = Field(default_factory=SetupConfig)
    dry_run: bool = False
    skip_install: bool = False
    show_welcome: bool = False


@dataclass
class Environment:
    """Process-level collaborators, replaced by fakes in tests."""

    runner: SubprocessRunner = subprocess.run
    which: Callable[[str], str | None] = shutil.which
    prompter: Prompter | None = None
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    host_detector: Callable[[], HostInfo] = detect_host
    wsl_detector: Callable[[], WslInfo] = detect_wsl
    applications_dir: Path = APPLICATIONS_DIR

    def resolve_prompter(self) -> Prompter:
        if self.prompter is None:
            self.prompter = ConsolePrompter()
        return self.prompter

    def detect(self) -> tuple[HostInfo, WslInfo]:
        host = self.host_detector()
        wsl = self.wsl_detector() if host.os == "linux" else WslInfo()
        return host, wsl


@dataclass
class InstallResult:
    platform: Platform
    ledger: InstallLedger | None
    backup: Path | None
    deployed: list[Path]
    ghostty_found: bool


def _context(
    request: BootstrapRequest,
    env: Environment,
    *,
    host: HostInfo,
    wsl: WslInfo,
    store: LedgerStore,
    ledger: InstallLedger,
) -> InstallContext:
    return InstallContext(
        home=request.home,
        host=host,
        store=store,
        ledger=ledger,
        prompter=env.resolve_prompter(),
        settings=request.settings,
        wsl=wsl,
        runner=env.runner,
        which=env.which,
        environ=env.environ,
        applications_dir=env.applications_dir,
        dry_run=request.dry_run,
    )


def _log_next_steps(config_dir: Path) -> None:
    logger.info("Installation complete!")
    logger.info("Next steps:")
    logger.info("  1. Restart your terminal or run: source ~/.bashrc (Linux) or source ~/.zprofile (macOS)")
    logger.info("  2. Launch Ghostty")
    logger.info("  3. Customize your config at: %s", config_dir / "config")
    logger.info("Configuration locations:")
    for location in describe_deployment(config_dir):
        logger.info("  - %s", location)
    logger.info("To update in the future, run this tool again!")


def run_install(request: BootstrapRequest, env: Environment | None = None) -> InstallResult:
    env = env or Environment()
    settings = request.settings
    if request.dry_run:
        logger.warning("Dry run mode enabled - no changes will be made")

    host, wsl = env.detect()
    platform = resolve_platform(host, wsl)
    logger.info("Detected platform: %s", platform.value)

    install_dir = settings.install_path(request.home)
    config_dir = settings.config_path(request.home)
    clone_or_update(settings.repo_url, install_dir, runner=env.runner, dry_run=request.dry_run)

    ledger: InstallLedger | None = None
    if request.skip_install:
        logger.info("Skipping Ghostty installation (--skip-install flag)")
    else:
        logger.info("Running Ghostty installation for %s...", platform.value)
        store = LedgerStore(default_ledger_path(config_dir))
        if request.dry_run:
            ledger = InstallLedger(platform=platform, install_date=store.stamp())
        else:
            ledger = store.initialize(platform)
        context = _context(request, env, host=host, wsl=wsl, store=store, ledger=ledger)
        INSTALLERS[platform](context)

    backup: Path | None = None
    deployed: list[Path] = []
    ghostty_found = False
    if request.dry_run:
        logger.info("Would back up %s and deploy configuration from %s", config_dir, install_dir)
    else:
        backup = backup_config(config_dir, keep=settings.backup_keep)
        deployed = deploy_config(install_dir / CONFIG_SOURCE_DIRNAME, config_dir)
        ghostty_found = verify_installation(config_dir, which=env.which, applications_dir=env.applications_dir)

    _log_next_steps(config_dir)
    if request.show_welcome and not request.dry_run:
        show_welcome(config_dir / WELCOME_IMAGE_NAME, runner=env.runner)

    return InstallResult(
        platform=platform,
        ledger=ledger,
        backup=backup,
        deployed=deployed,
        ghostty_found=ghostty_found,
    )


def run_uninstall(request: BootstrapRequest, env: Environment | None = None) -> UninstallReport:
    env = env or Environment()
    settings = request.settings
    config_dir = settings.config_path(request.home)
    store = LedgerStore(default_ledger_path(config_dir))
    ledger = store.load()
    if not store.exists():
        logger.warning("No install ledger found at %s; only configuration files will be removed", store.path)

    host, wsl = env.detect()
    context = _context(request, env, host=host, wsl=wsl, store=store, ledger=ledger)
    return uninstall(context, config_dir=config_dir, install_dir=settings.install_path(request.home))
