"""Shared state and command execution for platform installers."""

from __future__ import annotations

import logging as py_logging
import os
import shlex
import shutil
import subprocess
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ghosttysetup.config import SetupConfig
from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.ledger import InstallLedger, LedgerStore
from ghosttysetup.prompts import Prompter
from ghosttysetup.runtime.host import HostInfo
from ghosttysetup.runtime.process import SubprocessRunner
from ghosttysetup.runtime.wsl import WslInfo

logger = py_logging.getLogger(__name__)

APPLICATIONS_DIR = Path("/Applications")


@dataclass
class InstallContext:
    """Everything an installer or the uninstaller needs, passed explicitly."""

    home: Path
    host: HostInfo
    store: LedgerStore
    ledger: InstallLedger
    prompter: Prompter
    settings: SetupConfig = field(default_factory=SetupConfig)
    wsl: WslInfo = field(default_factory=WslInfo)
    runner: SubprocessRunner = subprocess.run
    which: Callable[[str], str | None] = shutil.which
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    applications_dir: Path = APPLICATIONS_DIR
    dry_run: bool = False

    def record(self, **fields: object) -> None:
        for name, value in fields.items():
            setattr(self.ledger, name, value)
        if self.dry_run:
            logger.debug("Dry run: ledger update not persisted %s", fields)
            return
        self.store.save(self.ledger)

    def has_command(self, name: str) -> bool:
        return self.which(name) is not None

    def path_contains(self, directory: Path) -> bool:
        entries = self.environ.get("PATH", "").split(os.pathsep)
        return str(directory) in entries

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        capture: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        argv = [str(item) for item in command]
        rendered = shlex.join(argv)
        if self.dry_run:
            logger.info("Would run: %s", rendered)
            return subprocess.CompletedProcess(args=argv, returncode=0, stdout="", stderr="")

        logger.debug("Running: %s (cwd=%s)", rendered, cwd or "")
        result = self.runner(
            argv,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=capture,
            text=True,
            check=False,
        )
        if check and result.returncode != 0:
            stderr = (result.stderr or "").strip() if capture else ""
            logger.error("Command failed returncode=%s: %s", result.returncode, rendered)
            raise GhosttySetupError(
                f"Command failed ({result.returncode}): {rendered}",
                code=ExitCode.FAILURE,
                hint=stderr[:200] or "Inspect the output above and re-run the installer.",
            )
        return result
