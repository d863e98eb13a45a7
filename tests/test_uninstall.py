from __future__ import annotations

from pathlib import Path

import pytest

from ghosttysetup.errors import GhosttySetupError
from ghosttysetup.installers.linux import install_linux
from ghosttysetup.ledger import InstallLedger, InstallMethod, Platform, ZigInstallMethod
from ghosttysetup.shell_profile import BREW_SHELLENV_LINE, LOCAL_BIN_PATH_LINE, ZIG_PATH_LINE
from ghosttysetup.uninstall import NOT_OURS, StepOutcome, uninstall


def _dirs(home: Path) -> dict[str, Path]:
    return {"config_dir": home / ".config" / "ghostty", "install_dir": home / ".ghostty-config"}


def _saved(store, **fields: object) -> InstallLedger:
    ledger = InstallLedger(install_date="20240102_030405", **fields)
    store.save(ledger)
    return ledger


def test_component_with_false_flag_is_left_untouched(machine, make_context, prompter, ledger_store) -> None:
    binary = machine.home / ".local" / "bin" / "ghostty"
    binary.parent.mkdir(parents=True)
    binary.write_text("ghostty", encoding="utf-8")
    ledger = _saved(
        ledger_store,
        platform=Platform.LINUX,
        ghostty_installed_by_script=False,
        ghostty_install_method=InstallMethod.PRE_EXISTING,
        ghostty_binary_path=str(binary),
    )
    context = make_context(ledger=ledger, prompter=prompter(True))

    report = uninstall(context, **_dirs(machine.home))

    assert binary.is_file()
    assert report.outcome_for("ghostty") is StepOutcome.SKIPPED
    assert report.steps[0].detail == NOT_OURS
    assert not ledger_store.exists()


def test_fresh_linux_install_is_fully_reverted(machine, make_context, prompter, ledger_store) -> None:
    install_linux(make_context())
    binary = machine.home / ".local" / "bin" / "ghostty"
    assert binary.is_file()

    context = make_context(ledger=ledger_store.load(), prompter=prompter(True))
    report = uninstall(context, **_dirs(machine.home))

    assert not report.has_failures
    assert not binary.exists()
    assert not (machine.home / ".local" / "zig").exists()
    assert not (machine.home / ".local" / "src" / "ghostty").exists()
    assert not (machine.home / ".local" / "share" / "applications" / "ghostty.desktop").exists()
    assert not ledger_store.exists()
    assert not (machine.home / ".config" / "ghostty").exists()
    assert machine.ran("sudo", "apt-get", "remove", "-y", "chafa")
    bashrc = (machine.home / ".bashrc").read_text(encoding="utf-8")
    assert ZIG_PATH_LINE not in bashrc
    assert LOCAL_BIN_PATH_LINE not in bashrc
    assert report.outcome_for("lazygit") is StepOutcome.SKIPPED
    assert report.outcome_for("homebrew") is StepOutcome.SKIPPED


def test_preexisting_homebrew_is_never_prompted_or_removed(machine, make_context, prompter, ledger_store) -> None:
    machine.commands.update({"brew", "ghostty"})
    ledger = _saved(
        ledger_store,
        platform=Platform.MACOS,
        ghostty_installed_by_script=True,
        ghostty_install_method=InstallMethod.HOMEBREW,
        ghostty_binary_path="/Applications/Ghostty.app",
        homebrew_installed_by_script=False,
    )
    answers = prompter(True, True, True)
    context = make_context(platform=Platform.MACOS, ledger=ledger, prompter=answers)

    report = uninstall(context, **_dirs(machine.home))

    assert answers.questions == ["Continue?"]
    assert "brew" in machine.commands
    assert not any("uninstall.sh" in " ".join(call) for call in machine.calls)
    assert machine.ran("/usr/bin/brew", "uninstall", "--cask", "ghostty")
    assert report.outcome_for("homebrew") is StepOutcome.SKIPPED


def test_homebrew_removal_needs_its_own_confirmation(machine, make_context, prompter, ledger_store) -> None:
    machine.commands.add("brew")
    ledger = _saved(ledger_store, platform=Platform.MACOS, homebrew_installed_by_script=True)
    answers = prompter(True, False)

    report = uninstall(make_context(platform=Platform.MACOS, ledger=ledger, prompter=answers), **_dirs(machine.home))

    assert len(answers.questions) == 2
    assert "Homebrew" in answers.questions[1]
    assert report.outcome_for("homebrew") is StepOutcome.SKIPPED
    assert "brew" in machine.commands


def test_declined_homebrew_keeps_its_shellenv_line(machine, make_context, prompter, ledger_store) -> None:
    machine.commands.add("brew")
    zprofile = machine.home / ".zprofile"
    zprofile.write_text(f"export LANG=C.UTF-8\n{BREW_SHELLENV_LINE}\n", encoding="utf-8")
    ledger = _saved(
        ledger_store,
        platform=Platform.MACOS,
        homebrew_installed_by_script=True,
        shell_profile=str(zprofile),
    )

    report = uninstall(
        make_context(platform=Platform.MACOS, ledger=ledger, prompter=prompter(True, False)),
        **_dirs(machine.home),
    )

    assert report.outcome_for("homebrew") is StepOutcome.SKIPPED
    assert report.outcome_for("shell-profile") is StepOutcome.SUCCEEDED
    assert zprofile.read_text(encoding="utf-8") == f"export LANG=C.UTF-8\n{BREW_SHELLENV_LINE}\n"


def test_confirmed_homebrew_removal_drops_its_shellenv_line(machine, make_context, prompter, ledger_store) -> None:
    machine.commands.add("brew")
    zprofile = machine.home / ".zprofile"
    zprofile.write_text(f"export LANG=C.UTF-8\n{BREW_SHELLENV_LINE}\n", encoding="utf-8")
    ledger = _saved(
        ledger_store,
        platform=Platform.MACOS,
        homebrew_installed_by_script=True,
        shell_profile=str(zprofile),
    )

    uninstall(
        make_context(platform=Platform.MACOS, ledger=ledger, prompter=prompter(True, True)),
        **_dirs(machine.home),
    )

    assert zprofile.read_text(encoding="utf-8") == "export LANG=C.UTF-8\n"


def test_reinstalled_preexisting_ghostty_keeps_binary_and_path_lines(
    machine, make_context, prompter, ledger_store
) -> None:
    install_linux(make_context())
    install_linux(make_context(prompter=prompter(True)))
    binary = machine.home / ".local" / "bin" / "ghostty"
    bashrc = machine.home / ".bashrc"
    assert bashrc.read_text(encoding="utf-8").splitlines() == [ZIG_PATH_LINE, LOCAL_BIN_PATH_LINE]

    report = uninstall(make_context(ledger=ledger_store.load(), prompter=prompter(True)), **_dirs(machine.home))

    assert report.outcome_for("ghostty") is StepOutcome.SKIPPED
    assert binary.is_file()
    assert bashrc.read_text(encoding="utf-8").splitlines() == [ZIG_PATH_LINE, LOCAL_BIN_PATH_LINE]
    assert (machine.home / ".local" / "src" / "ghostty").is_dir()


def test_failed_ghostty_removal_keeps_its_path_line(machine, make_context, prompter, ledger_store) -> None:
    bashrc = machine.home / ".bashrc"
    bashrc.write_text(f"{LOCAL_BIN_PATH_LINE}\n", encoding="utf-8")
    ledger = _saved(
        ledger_store,
        platform=Platform.LINUX,
        ghostty_installed_by_script=True,
        ghostty_install_method=InstallMethod.SOURCE,
        shell_profile=str(bashrc),
    )

    report = uninstall(make_context(ledger=ledger, prompter=prompter(True)), **_dirs(machine.home))

    assert report.outcome_for("ghostty") is StepOutcome.FAILED
    assert bashrc.read_text(encoding="utf-8") == f"{LOCAL_BIN_PATH_LINE}\n"


def test_preexisting_source_checkout_survives_uninstall(machine, make_context, prompter, ledger_store) -> None:
    checkout = machine.home / ".local" / "src" / "ghostty"
    checkout.mkdir(parents=True)
    (checkout / "MY_PATCHES.diff").write_text("--- a/src/main.zig\n", encoding="utf-8")

    install_linux(make_context())
    ledger = ledger_store.load()
    assert ledger.ghostty_installed_by_script is True
    assert ledger.ghostty_source_cloned_by_script is False
    assert machine.ran("git", "pull", "--quiet")

    report = uninstall(make_context(ledger=ledger, prompter=prompter(True)), **_dirs(machine.home))

    assert report.outcome_for("ghostty") is StepOutcome.SUCCEEDED
    assert not (machine.home / ".local" / "bin" / "ghostty").exists()
    assert (checkout / "MY_PATCHES.diff").is_file()


def test_undecodable_profile_does_not_abort_the_run(machine, make_context, prompter, ledger_store) -> None:
    zig_dir = machine.home / ".local" / "zig"
    zig_dir.mkdir(parents=True)
    bashrc = machine.home / ".bashrc"
    bashrc.write_bytes(b"# caf\xe9 settings\n" + ZIG_PATH_LINE.encode() + b"\nexport EDITOR=vi\r\n")
    ledger = _saved(
        ledger_store,
        platform=Platform.LINUX,
        zig_installed_by_script=True,
        zig_install_method=ZigInstallMethod.TARBALL,
        shell_profile=str(bashrc),
    )

    report = uninstall(make_context(ledger=ledger, prompter=prompter(True)), **_dirs(machine.home))

    assert not report.has_failures
    assert report.outcome_for("shell-profile") is StepOutcome.SUCCEEDED
    assert bashrc.read_bytes() == b"# caf\xe9 settings\nexport EDITOR=vi\r\n"
    assert not ledger_store.exists()
    assert not (machine.home / ".config" / "ghostty").exists()


def test_confirmed_homebrew_removal_runs_uninstall_script(machine, make_context, prompter, ledger_store) -> None:
    machine.commands.add("brew")
    ledger = _saved(ledger_store, platform=Platform.MACOS, homebrew_installed_by_script=True)

    report = uninstall(
        make_context(platform=Platform.MACOS, ledger=ledger, prompter=prompter(True, True)),
        **_dirs(machine.home),
    )

    assert report.outcome_for("homebrew") is StepOutcome.SUCCEEDED
    assert "brew" not in machine.commands


def test_failed_step_does_not_block_the_rest(machine, make_context, prompter, ledger_store) -> None:
    zig_dir = machine.home / ".local" / "zig"
    zig_dir.mkdir(parents=True)
    machine.failing.add("apt-get remove")
    ledger = _saved(
        ledger_store,
        platform=Platform.LINUX,
        chafa_installed_by_script=True,
        zig_installed_by_script=True,
        zig_install_method=ZigInstallMethod.TARBALL,
    )

    report = uninstall(make_context(ledger=ledger, prompter=prompter(True)), **_dirs(machine.home))

    assert report.has_failures
    assert report.outcome_for("chafa") is StepOutcome.FAILED
    assert report.outcome_for("zig") is StepOutcome.SUCCEEDED
    assert report.outcome_for("ledger") is StepOutcome.SUCCEEDED
    assert not zig_dir.exists()
    assert not ledger_store.exists()


def test_declining_the_initial_confirmation_is_fatal(machine, make_context, prompter, ledger_store) -> None:
    ledger = _saved(ledger_store, platform=Platform.LINUX, chafa_installed_by_script=True)

    with pytest.raises(GhosttySetupError, match="Uninstall cancelled"):
        uninstall(make_context(ledger=ledger, prompter=prompter(False)), **_dirs(machine.home))

    assert ledger_store.exists()
    assert machine.calls == []


def test_dry_run_reports_plan_without_touching_anything(machine, make_context, prompter, ledger_store) -> None:
    binary = machine.home / ".local" / "bin" / "ghostty"
    binary.parent.mkdir(parents=True)
    binary.write_text("ghostty", encoding="utf-8")
    ledger = _saved(
        ledger_store,
        platform=Platform.LINUX,
        ghostty_installed_by_script=True,
        ghostty_install_method=InstallMethod.SOURCE,
        ghostty_binary_path=str(binary),
    )
    answers = prompter()

    report = uninstall(make_context(ledger=ledger, prompter=answers, dry_run=True), **_dirs(machine.home))

    assert report.dry_run is True
    assert all(step.outcome is StepOutcome.SKIPPED for step in report.steps)
    assert any(step.detail.startswith("dry run: would remove Ghostty") for step in report.steps)
    assert answers.questions == []
    assert binary.is_file()
    assert ledger_store.exists()
    assert machine.calls == []


def test_identical_user_line_in_profile_is_removed_too(machine, make_context, prompter, ledger_store) -> None:
    bashrc = machine.home / ".bashrc"
    bashrc.write_text(f"alias ll='ls -l'\n{ZIG_PATH_LINE}\nexport EDITOR=vim\n", encoding="utf-8")
    (machine.home / ".local" / "zig").mkdir(parents=True)
    ledger = _saved(
        ledger_store,
        platform=Platform.LINUX,
        zig_installed_by_script=True,
        zig_install_method=ZigInstallMethod.TARBALL,
        shell_profile=str(bashrc),
    )

    report = uninstall(make_context(ledger=ledger, prompter=prompter(True)), **_dirs(machine.home))

    assert report.outcome_for("shell-profile") is StepOutcome.SUCCEEDED
    assert bashrc.read_text(encoding="utf-8") == "alias ll='ls -l'\nexport EDITOR=vim\n"


def test_binary_outside_home_is_removed_with_sudo(machine, make_context, prompter, ledger_store, tmp_path) -> None:
    binary = tmp_path / "usr" / "bin" / "ghostty"
    binary.parent.mkdir(parents=True)
    binary.write_text("ghostty", encoding="utf-8")
    ledger = _saved(
        ledger_store,
        platform=Platform.WSL,
        ghostty_installed_by_script=True,
        ghostty_install_method=InstallMethod.SOURCE,
        ghostty_binary_path=str(binary),
    )

    report = uninstall(make_context(platform=Platform.WSL, ledger=ledger, prompter=prompter(True)), **_dirs(machine.home))

    assert machine.ran("sudo", "rm", "-rf", str(binary))
    assert binary.is_file()
    assert report.outcome_for("ghostty") is StepOutcome.SUCCEEDED


def test_lazygit_ppa_flag_removes_the_ppa(machine, make_context, prompter, ledger_store) -> None:
    ledger = _saved(
        ledger_store,
        platform=Platform.WSL,
        lazygit_installed_by_script=True,
        lazygit_ppa_added=True,
    )

    report = uninstall(make_context(platform=Platform.WSL, ledger=ledger, prompter=prompter(True)), **_dirs(machine.home))

    assert machine.ran("sudo", "add-apt-repository", "--remove", "ppa:lazygit-team/release", "-y")
    assert report.outcome_for("lazygit") is StepOutcome.SUCCEEDED


def test_source_install_without_binary_path_is_reported_failed(machine, make_context, prompter, ledger_store) -> None:
    ledger = _saved(
        ledger_store,
        platform=Platform.LINUX,
        ghostty_installed_by_script=True,
        ghostty_install_method=InstallMethod.SOURCE,
    )

    report = uninstall(make_context(ledger=ledger, prompter=prompter(True)), **_dirs(machine.home))

    assert report.outcome_for("ghostty") is StepOutcome.FAILED
    assert report.outcome_for("config") is StepOutcome.SUCCEEDED
