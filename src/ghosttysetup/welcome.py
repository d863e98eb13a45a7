"""Welcome image rendered in the terminal with chafa."""

from __future__ import annotations

import logging as py_logging
import subprocess
from pathlib import Path

from ghosttysetup.runtime.process import SubprocessRunner

logger = py_logging.getLogger(__name__)

WELCOME_IMAGE_NAME = "wizard.png"
_SIZE = "40x20"


def show_welcome(image: Path, *, runner: SubprocessRunner = subprocess.run) -> bool:
    if not image.is_file():
        logger.debug("Welcome image not found at %s", image)
        return False
    for image_format in ("kitty", "symbols"):
        try:
            result = runner(
                ["chafa", f"--format={image_format}", f"--size={_SIZE}", str(image)],
                check=False,
            )
        except OSError:
            logger.warning("chafa is not available; skipping welcome image")
            return False
        if result.returncode == 0:
            return True
        logger.debug("chafa --format=%s failed returncode=%s", image_format, result.returncode)
    return False
