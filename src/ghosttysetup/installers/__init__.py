"""Platform installers keyed by detected platform."""

from __future__ import annotations

from collections.abc import Callable

from ghosttysetup.installers.context import InstallContext
from ghosttysetup.installers.linux import install_linux
from ghosttysetup.installers.macos import install_macos
from ghosttysetup.installers.wsl import install_wsl
from ghosttysetup.ledger import Platform

INSTALLERS: dict[Platform, Callable[[InstallContext], None]] = {
    Platform.LINUX: install_linux,
    Platform.MACOS: install_macos,
    Platform.WSL: install_wsl,
}

__all__ = ["INSTALLERS", "InstallContext"]
