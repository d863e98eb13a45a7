"""Ledger-driven uninstall.

A component is removed only when the ledger says this tool installed it.
Shell-profile lines follow their component: a line is reverted only when the
component it serves was removed in the same run.
Every removal is attempted independently and yields a ``StepResult``; the
collected ``UninstallReport`` is returned to the caller instead of failures
being dropped.
"""

from __future__ import annotations

import logging as py_logging
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from pathlib import Path

from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.installers.context import InstallContext
from ghosttysetup.installers.lazygit import INSTALL_TARGET as LAZYGIT_TARGET
from ghosttysetup.installers.lazygit import PPA_NAME
from ghosttysetup.installers.packages import brew_uninstall_command, remove_command
from ghosttysetup.ledger import InstallMethod, Platform, ZigInstallMethod
from ghosttysetup.shell_profile import LINE_OWNERS, remove_managed_lines

logger = py_logging.getLogger(__name__)

HOMEBREW_UNINSTALL_SCRIPT = "https://raw.githubusercontent.com/Homebrew/install/HEAD/uninstall.sh"
NOT_OURS = "not installed by ghosttysetup"


class StepOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    component: str
    outcome: StepOutcome
    detail: str = ""


@dataclass
class UninstallReport:
    steps: list[StepResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def has_failures(self) -> bool:
        return any(step.outcome is StepOutcome.FAILED for step in self.steps)

    def outcome_for(self, component: str) -> StepOutcome | None:
        for step in self.steps:
            if step.component == component:
                return step.outcome
        return None

    def add(self, component: str, outcome: StepOutcome, detail: str = "") -> StepResult:
        result = StepResult(component=component, outcome=outcome, detail=detail)
        self.steps.append(result)
        return result


@dataclass(frozen=True)
class RemovalStep:
    component: str
    description: str
    action: Callable[[], str]
    confirmation: str = ""


class Reconciler:
    def __init__(self, context: InstallContext, *, config_dir: Path, install_dir: Path) -> None:
        self.context = context
        self.config_dir = config_dir
        self.install_dir = install_dir

    @property
    def platform(self) -> Platform:
        if self.context.ledger.platform is not None:
            return self.context.ledger.platform
        return Platform.MACOS if self.context.host.os == "macos" else Platform.LINUX

    def _brew(self) -> str:
        return self.context.which("brew") or "brew"

    def _remove_path(self, path: Path) -> str:
        if not path.exists() and not path.is_symlink():
            return f"{path} already absent"
        if path.is_relative_to(self.context.home):
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        else:
            self.context.run(["sudo", "rm", "-rf", str(path)])
        return f"removed {path}"

    def _remove_ghostty(self) -> str:
        ledger = self.context.ledger
        method = ledger.ghostty_install_method
        if method is InstallMethod.HOMEBREW:
            self.context.run(brew_uninstall_command(["ghostty"], brew=self._brew(), cask=True))
            return "brew uninstall --cask ghostty"
        if method is InstallMethod.SNAP:
            self.context.run(["sudo", "snap", "remove", "ghostty"])
            return "snap remove ghostty"
        if not ledger.ghostty_binary_path:
            raise GhosttySetupError(
                f"No binary path recorded for Ghostty (method={method.value})",
                code=ExitCode.FAILURE,
                hint="Remove Ghostty manually.",
            )
        details = [self._remove_path(Path(ledger.ghostty_binary_path))]
        desktop = self.context.home / ".local" / "share" / "applications" / "ghostty.desktop"
        if desktop.exists():
            details.append(self._remove_path(desktop))
        build_dir = self.context.settings.build_path(self.context.home)
        if ledger.ghostty_source_cloned_by_script:
            details.append(self._remove_path(build_dir))
        elif build_dir.exists():
            details.append(f"kept {build_dir} (checkout predates the install)")
        return "; ".join(details)

    def _remove_package(self, package: str) -> str:
        if self.platform is Platform.MACOS:
            self.context.run(brew_uninstall_command([package], brew=self._brew()))
            return f"brew uninstall {package}"
        self.context.run(remove_command(self.context.host.package_family, [package]))
        return f"package {package} removed"

    def _remove_lazygit(self) -> str:
        family = self.context.host.package_family
        if self.platform is Platform.MACOS or family in ("dnf", "pacman"):
            detail = self._remove_package("lazygit")
        else:
            detail = self._remove_path(LAZYGIT_TARGET)
        if self.context.ledger.lazygit_ppa_added:
            self.context.run(["sudo", "add-apt-repository", "--remove", PPA_NAME, "-y"])
            detail += f"; removed {PPA_NAME}"
        return detail

    def _remove_zig(self) -> str:
        method = self.context.ledger.zig_install_method
        if method is ZigInstallMethod.TARBALL:
            return self._remove_path(self.context.home / ".local" / "zig")
        if method is ZigInstallMethod.SNAP:
            self.context.run(["sudo", "snap", "remove", "zig"])
            return "snap remove zig"
        if method is ZigInstallMethod.HOMEBREW:
            self.context.run(brew_uninstall_command(["zig"], brew=self._brew()))
            return "brew uninstall zig"
        raise GhosttySetupError(
            f"No removal method recorded for Zig (method={method.value})",
            code=ExitCode.FAILURE,
            hint="Remove Zig manually.",
        )

    def _remove_homebrew(self) -> str:
        self.context.run(["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {HOMEBREW_UNINSTALL_SCRIPT})"'])
        return "Homebrew uninstalled"

    def _revert_shell_profile(self, report: UninstallReport) -> str:
        profile = Path(self.context.ledger.shell_profile)
        lines = [
            line for component, line in LINE_OWNERS.items() if report.outcome_for(component) is StepOutcome.SUCCEEDED
        ]
        if not lines:
            return f"nothing to remove from {profile}"
        removed = remove_managed_lines(profile, lines)
        return f"removed {removed} line(s) from {profile}"

    def plan(self, report: UninstallReport) -> list[RemovalStep]:
        """Record skipped components in ``report`` and return the removals to run."""
        ledger = self.context.ledger
        candidates = [
            ("ghostty", ledger.ghostty_installed_by_script, "remove Ghostty", self._remove_ghostty, ""),
            ("chafa", ledger.chafa_installed_by_script, "remove chafa", lambda: self._remove_package("chafa"), ""),
            ("lazygit", ledger.lazygit_installed_by_script, "remove lazygit", self._remove_lazygit, ""),
            ("zig", ledger.zig_installed_by_script, "remove Zig", self._remove_zig, ""),
            (
                "homebrew",
                ledger.homebrew_installed_by_script,
                "uninstall Homebrew",
                self._remove_homebrew,
                "Homebrew was installed by this tool. Uninstalling it also removes every formula "
                "installed with it. Remove Homebrew?",
            ),
        ]
        steps: list[RemovalStep] = []
        for component, installed_by_us, description, action, confirmation in candidates:
            if not installed_by_us:
                report.add(component, StepOutcome.SKIPPED, NOT_OURS)
                continue
            steps.append(RemovalStep(component, description, action, confirmation))

        if ledger.shell_profile:
            revert = partial(self._revert_shell_profile, report)
            steps.append(RemovalStep("shell-profile", f"clean {ledger.shell_profile}", revert))
        else:
            report.add("shell-profile", StepOutcome.SKIPPED, "no shell profile recorded")

        steps.append(RemovalStep("ledger", f"delete {self.context.store.path}", self._delete_ledger))
        steps.append(RemovalStep("config", f"delete {self.config_dir}", lambda: self._delete_tree(self.config_dir)))
        steps.append(RemovalStep("repository", f"delete {self.install_dir}", lambda: self._delete_tree(self.install_dir)))
        return steps

    def _delete_ledger(self) -> str:
        if self.context.store.delete():
            return f"deleted {self.context.store.path}"
        return "no ledger file"

    @staticmethod
    def _delete_tree(path: Path) -> str:
        if not path.exists():
            return f"{path} already absent"
        shutil.rmtree(path)
        return f"deleted {path}"

    def _attempt(self, step: RemovalStep, report: UninstallReport) -> None:
        if step.confirmation and not self.context.prompter.confirm(step.confirmation):
            logger.info("Keeping %s", step.component)
            report.add(step.component, StepOutcome.SKIPPED, "declined by user")
            return
        try:
            detail = step.action()
        except (GhosttySetupError, OSError, ValueError, subprocess.SubprocessError) as exc:
            logger.warning("Failed to %s: %s", step.description, exc)
            report.add(step.component, StepOutcome.FAILED, str(exc))
            return
        logger.info("%s: %s", step.component, detail)
        report.add(step.component, StepOutcome.SUCCEEDED, detail)

    def run(self) -> UninstallReport:
        report = UninstallReport(dry_run=self.context.dry_run)
        steps = self.plan(report)
        for step in steps:
            if self.context.dry_run:
                logger.info("Would %s", step.description)
                report.add(step.component, StepOutcome.SKIPPED, f"dry run: would {step.description}")
                continue
            self._attempt(step, report)
        return report


def log_report(report: UninstallReport) -> None:
    for step in report.steps:
        level = py_logging.WARNING if step.outcome is StepOutcome.FAILED else py_logging.INFO
        logger.log(level, "%-14s %-9s %s", step.component, step.outcome.value, step.detail)


def uninstall(context: InstallContext, *, config_dir: Path, install_dir: Path) -> UninstallReport:
    logger.warning("This will remove the Ghostty configuration and every component this tool installed.")
    if not context.dry_run and not context.prompter.confirm("Continue?"):
        logger.info("Uninstall cancelled")
        raise GhosttySetupError(
            "Uninstall cancelled",
            code=ExitCode.FAILURE,
            hint="Re-run with --uninstall and confirm to remove the installation.",
        )

    report = Reconciler(context, config_dir=config_dir, install_dir=install_dir).run()
    log_report(report)
    if report.has_failures:
        logger.warning("Uninstall finished with failures; remove the remaining items manually.")
    else:
        logger.info("Uninstall complete")
    return report
