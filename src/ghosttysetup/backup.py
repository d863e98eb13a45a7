"""Timestamped backups of the deployed configuration directory."""

from __future__ import annotations

import logging as py_logging
import shutil
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

logger = py_logging.getLogger(__name__)

BACKUPS_DIRNAME = "backups"
BACKUP_PREFIX = "backup_"
DEFAULT_KEEP = 5


def list_backups(config_dir: Path) -> list[Path]:
    """Backups oldest first, ordered by modification time then name."""
    backup_root = config_dir / BACKUPS_DIRNAME
    if not backup_root.is_dir():
        return []
    entries = [item for item in backup_root.iterdir() if item.is_dir() and item.name.startswith(BACKUP_PREFIX)]
    return sorted(entries, key=lambda item: (item.stat().st_mtime_ns, item.name))


def _unique_backup_path(backup_root: Path, stamp: str) -> Path:
    candidate = backup_root / f"{BACKUP_PREFIX}{stamp}"
    suffix = 1
    while candidate.exists():
        candidate = backup_root / f"{BACKUP_PREFIX}{stamp}_{suffix}"
        suffix += 1
    return candidate


def prune_backups(config_dir: Path, keep: int = DEFAULT_KEEP) -> list[Path]:
    backups = list_backups(config_dir)
    stale = backups[:-keep] if len(backups) > keep else []
    if stale:
        logger.info("Cleaning old backups (keeping last %s)...", keep)
    for item in stale:
        shutil.rmtree(item)
    return stale


def backup_config(
    config_dir: Path,
    *,
    keep: int = DEFAULT_KEEP,
    now: Callable[[], datetime] = datetime.now,
) -> Path | None:
    if not config_dir.is_dir():
        logger.info("No existing Ghostty configuration found. Skipping backup.")
        return None

    items = [item for item in config_dir.iterdir() if item.name != BACKUPS_DIRNAME]
    if not items:
        logger.info("Ghostty config directory is empty. Skipping backup.")
        return None

    backup_root = config_dir / BACKUPS_DIRNAME
    backup_root.mkdir(parents=True, exist_ok=True)
    target = _unique_backup_path(backup_root, now().strftime("%Y%m%d_%H%M%S"))
    target.mkdir()
    logger.info("Creating backup of existing Ghostty configuration...")
    for item in items:
        if item.is_dir() and not item.is_symlink():
            shutil.copytree(item, target / item.name, symlinks=True)
        else:
            shutil.copy2(item, target / item.name, follow_symlinks=False)
    logger.info("Backup created at: %s", target)

    prune_backups(config_dir, keep)
    return target
