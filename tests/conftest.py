from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

import pytest

from ghosttysetup.installers.context import InstallContext
from ghosttysetup.ledger import InstallLedger, LedgerStore, Platform
from ghosttysetup.runtime.host import HostInfo
from ghosttysetup.runtime.wsl import WslInfo

_SECURITY_TEST_FILES = {
    "test_uninstall.py",
    "test_shell_profile.py",
}

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5)

_PACKAGE_TOOLS = {"apt-get", "dnf", "pacman", "brew", "snap"}
_INSTALL_VERBS = {"install", "-S", "-Sy"}
_REMOVE_VERBS = {"remove", "uninstall", "-R"}


def _cp(returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@dataclass
class FakeMachine:
    """A host whose commands only change in-memory state and files under tmp_path."""

    home: Path
    commands: set[str] = field(default_factory=set)
    calls: list[list[str]] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)

    def which(self, name: str) -> str | None:
        if name in self.commands:
            return f"/usr/bin/{name}"
        for candidate in (self.home / ".local" / "bin" / name, self.home / ".local" / "zig" / name):
            if candidate.is_file():
                return str(candidate)
        return None

    def ran(self, *fragment: str) -> bool:
        expected = list(fragment)
        size = len(expected)
        return any(call[index : index + size] == expected for call in self.calls for index in range(len(call)))

    def _clone(self, target: Path) -> None:
        config = target / "config"
        (config / "themes").mkdir(parents=True, exist_ok=True)
        (config / "config").write_text("theme = dracula\n", encoding="utf-8")
        (config / "keybindings.conf").write_text("keybind = ctrl+t=new_tab\n", encoding="utf-8")
        (config / "themes" / "dracula").write_text("background = 282a36\n", encoding="utf-8")
        (config / "wizard.png").write_bytes(b"\x89PNG")
        desktop = target / "src" / "apprt" / "gtk" / "ghostty.desktop"
        desktop.parent.mkdir(parents=True, exist_ok=True)
        desktop.write_text("[Desktop Entry]\nExec=ghostty\n", encoding="utf-8")

    def runner(
        self,
        args: Sequence[str],
        *,
        cwd: str | None = None,
        capture_output: bool = False,
        text: bool = False,
        check: bool = False,
    ) -> subprocess.CompletedProcess:
        del capture_output, text, check
        command = list(args)
        self.calls.append(command)
        rendered = " ".join(command)
        for pattern in self.failing:
            if pattern in rendered:
                return _cp(1, stderr=f"{pattern} failed")

        argv = command[1:] if command[:1] == ["sudo"] else command
        tool = Path(argv[0]).name
        if tool == "git" and argv[1] == "clone":
            self._clone(Path(argv[-1]))
        elif tool == "zig" and "build" in argv:
            out = Path(str(cwd)) / "zig-out" / "bin"
            out.mkdir(parents=True, exist_ok=True)
            (out / "ghostty").write_text("ghostty", encoding="utf-8")
            (out / "Ghostty.app" / "Contents").mkdir(parents=True, exist_ok=True)
            if "-p" in argv:
                self.commands.add("ghostty")
        elif tool == "tar" and argv[1] == "-xf":
            target = Path(argv[argv.index("-C") + 1])
            target.mkdir(parents=True, exist_ok=True)
            (target / "zig").write_text("zig", encoding="utf-8")
        elif tool == "install" and argv[-2].endswith("lazygit"):
            self.commands.add("lazygit")
        elif tool == "bash" and "uninstall.sh" in argv[-1]:
            self.commands.discard("brew")
        elif tool == "bash" and "install.sh" in argv[-1]:
            self.commands.add("brew")
        elif tool in _PACKAGE_TOOLS and len(argv) > 1:
            verb = argv[1]
            packages = [item for item in argv[2:] if not item.startswith("-")]
            if verb == "list":
                return _cp(0 if packages and packages[-1] in self.commands else 1)
            if verb in _INSTALL_VERBS:
                self.commands.update(packages)
            elif verb in _REMOVE_VERBS:
                self.commands.difference_update(packages)
        return _cp(0)


class ScriptedPrompter:
    def __init__(self, *answers: bool, interactive: bool = True, choice: str | None = None) -> None:
        self.answers = list(answers)
        self.questions: list[str] = []
        self.choice = choice
        self._interactive = interactive

    @property
    def interactive(self) -> bool:
        return self._interactive

    def confirm(self, question: str, *, default: bool = False) -> bool:
        self.questions.append(question)
        if not self._interactive or not self.answers:
            return default
        return self.answers.pop(0)

    def choose(self, question: str, choices: Sequence[str], *, default: str) -> str:
        self.questions.append(question)
        if self.choice in choices:
            return str(self.choice)
        return default


def _host_for(platform: Platform) -> HostInfo:
    if platform is Platform.MACOS:
        return HostInfo(os="macos", arch="arm64")
    return HostInfo(os="linux", arch="x86_64", distro="ubuntu", distro_version="24.04")


@pytest.fixture
def machine(tmp_path: Path) -> FakeMachine:
    home = tmp_path / "home"
    home.mkdir()
    return FakeMachine(home=home, commands={"git", "curl", "tar"})


@pytest.fixture
def prompter() -> Callable[..., ScriptedPrompter]:
    return ScriptedPrompter


@pytest.fixture
def ledger_store(machine: FakeMachine) -> LedgerStore:
    return LedgerStore(machine.home / ".config" / "ghostty" / ".install_log", clock=lambda: FIXED_NOW)


@pytest.fixture
def make_context(machine: FakeMachine, ledger_store: LedgerStore) -> Callable[..., InstallContext]:
    def factory(
        *,
        platform: Platform = Platform.LINUX,
        host: HostInfo | None = None,
        wsl: WslInfo | None = None,
        prompter: ScriptedPrompter | None = None,
        ledger: InstallLedger | None = None,
        dry_run: bool = False,
    ) -> InstallContext:
        if ledger is None:
            if dry_run:
                ledger = InstallLedger(platform=platform, install_date=ledger_store.stamp())
            else:
                ledger = ledger_store.initialize(platform)
        return InstallContext(
            home=machine.home,
            host=host or _host_for(platform),
            store=ledger_store,
            ledger=ledger,
            prompter=prompter or ScriptedPrompter(),
            wsl=wsl or WslInfo(),
            runner=machine.runner,
            which=machine.which,
            environ={"PATH": "/usr/bin:/bin"},
            applications_dir=machine.home / "Applications",
            dry_run=dry_run,
        )

    return factory


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))
        name = path.name

        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if name in _SECURITY_TEST_FILES:
            item.add_marker(pytest.mark.security)
