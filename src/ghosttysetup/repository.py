"""Clone-or-update for git working copies."""

from __future__ import annotations

import logging as py_logging
import shlex
import subprocess
from pathlib import Path

from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.runtime.process import SubprocessRunner

logger = py_logging.getLogger(__name__)


def _run_git(args: list[str], runner: SubprocessRunner, *, cwd: Path | None = None) -> subprocess.CompletedProcess:
    return runner(
        ["git", *args],
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=True,
        check=False,
    )


def clone_or_update(
    url: str,
    target: Path,
    *,
    runner: SubprocessRunner = subprocess.run,
    dry_run: bool = False,
) -> bool:
    """Pull ``target`` if it exists, clone ``url`` into it otherwise.

    Returns True when a fresh clone was made.
    """
    if target.is_dir():
        logger.info("Repository already exists at %s. Updating...", target)
        args = ["pull", "--quiet"]
        cwd: Path | None = target
        cloned = False
    else:
        logger.info("Cloning %s into %s...", url, target)
        args = ["clone", "--quiet", url, str(target)]
        cwd = None
        cloned = True

    if dry_run:
        logger.info("Would run: git %s", shlex.join(args))
        return cloned

    if cloned:
        target.parent.mkdir(parents=True, exist_ok=True)
    result = _run_git(args, runner, cwd=cwd)
    if result.returncode != 0:
        logger.error("git %s failed: %s", args[0], (result.stderr or "").strip())
        raise GhosttySetupError(
            f"Failed to {'clone' if cloned else 'update'} repository {url}.",
            code=ExitCode.FAILURE,
            hint=(result.stderr or "Check network access and git credentials.").strip(),
        )
    logger.info("Repository ready at %s", target)
    return cloned
