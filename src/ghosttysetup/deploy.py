"""Configuration deployment and post-install verification."""

from __future__ import annotations

import logging as py_logging
import shutil
from collections.abc import Callable
from pathlib import Path

from ghosttysetup.errors import ExitCode, GhosttySetupError

logger = py_logging.getLogger(__name__)

CONFIG_FILES = ("config", "keybindings.conf")
OPTIONAL_FILES = ("wizard.png",)
THEMES_DIRNAME = "themes"


def deploy_config(source_dir: Path, config_dir: Path) -> list[Path]:
    logger.info("Deploying Ghostty configuration...")
    missing = [name for name in CONFIG_FILES if not (source_dir / name).is_file()]
    if missing:
        raise GhosttySetupError(
            f"Configuration source is incomplete: missing {', '.join(missing)}",
            code=ExitCode.FAILURE,
            hint=f"Check the repository checkout at {source_dir.parent}.",
        )

    config_dir.mkdir(parents=True, exist_ok=True)
    deployed: list[Path] = []
    for name in (*CONFIG_FILES, *OPTIONAL_FILES):
        source = source_dir / name
        if source.is_file():
            deployed.append(Path(shutil.copy2(source, config_dir / name)))

    themes_source = source_dir / THEMES_DIRNAME
    themes_target = config_dir / THEMES_DIRNAME
    themes_target.mkdir(exist_ok=True)
    if themes_source.is_dir():
        for theme in sorted(themes_source.iterdir()):
            if theme.is_dir():
                shutil.copytree(theme, themes_target / theme.name, dirs_exist_ok=True)
                deployed.append(themes_target / theme.name)
            else:
                deployed.append(Path(shutil.copy2(theme, themes_target / theme.name)))

    logger.info("Configuration deployed to %s", config_dir)
    return deployed


def describe_deployment(config_dir: Path) -> list[str]:
    return [str(config_dir / name) for name in CONFIG_FILES] + [f"{config_dir / THEMES_DIRNAME}/"]


def verify_installation(
    config_dir: Path,
    *,
    which: Callable[[str], str | None] = shutil.which,
    applications_dir: Path = Path("/Applications"),
) -> bool:
    """Report whether Ghostty is reachable; fail if the main config is missing."""
    logger.info("Verifying installation...")
    ghostty_found = True
    binary = which("ghostty")
    if binary:
        logger.info("Ghostty is installed: %s", binary)
    elif (applications_dir / "Ghostty.app").is_dir():
        logger.info("Ghostty is installed at %s", applications_dir / "Ghostty.app")
    else:
        ghostty_found = False
        logger.warning("Ghostty binary not found in PATH")
        logger.info("You may need to restart your shell or add it to PATH")

    if not (config_dir / "config").is_file():
        logger.error("Configuration file not found!")
        raise GhosttySetupError(
            f"Configuration file not found at {config_dir / 'config'}",
            code=ExitCode.FAILURE,
            hint="Re-run the installer without --dry-run.",
        )
    logger.info("Configuration file exists")
    return ghostty_found
