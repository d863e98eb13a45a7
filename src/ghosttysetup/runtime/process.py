"""Callable shape shared by everything that shells out."""

from __future__ import annotations

import subprocess
from typing import Protocol


class SubprocessRunner(Protocol):
    def __call__(
        self,
        args: list[str],
        *,
        cwd: str | None = None,
        capture_output: bool = False,
        text: bool = False,
        check: bool = False,
    ) -> subprocess.CompletedProcess[str]: ...
