"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import logging as py_logging
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from .bootstrap import BootstrapRequest, run_install, run_uninstall
from .config import load_config
from .errors import ExitCode, GhosttySetupError, user_facing_error
from .logging import configure_logging, default_log_path

_DESCRIPTION = "Install Ghostty and deploy its configuration on Linux, macOS or WSL."
_EPILOG = """\
examples:
  ghosttysetup                 standard installation
  ghosttysetup --dry-run       show what would happen
  ghosttysetup --skip-install  only deploy configuration (Ghostty already installed)
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghosttysetup",
        description=_DESCRIPTION,
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )
    parser.add_argument(
        "-s",
        "--skip-install",
        action="store_true",
        help="Skip Ghostty installation, only deploy config",
    )
    parser.add_argument(
        "--uninstall",
        action="store_true",
        help="Remove the configuration and every component this tool installed",
    )
    parser.add_argument(
        "--show-welcome",
        action="store_true",
        help="Render the welcome image with chafa after installing",
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings file (TOML)")
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def build_request(namespace: argparse.Namespace) -> BootstrapRequest:
    return BootstrapRequest(
        settings=load_config(namespace.config),
        dry_run=namespace.dry_run,
        skip_install=namespace.skip_install,
        show_welcome=namespace.show_welcome,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    installer: Callable[[BootstrapRequest], object] | None = None,
    uninstaller: Callable[[BootstrapRequest], object] | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code in (None, 0):
            return int(ExitCode.SUCCESS)
        logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(ExitCode.FAILURE)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level="DEBUG" if namespace.verbose else "INFO", log_file=log_path)

    try:
        request = build_request(namespace)
        if namespace.uninstall:
            logger.debug("Starting uninstall flow")
            (uninstaller or run_uninstall)(request)
        else:
            logger.info("=== Ghostty Bootstrap ===")
            (installer or run_install)(request)
        return int(ExitCode.SUCCESS)
    except GhosttySetupError as exc:
        logger.error(
            "Handled GhosttySetupError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return int(ExitCode.FAILURE)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        print(user_facing_error("Unexpected failure", hint=f"Inspect logs: {log_path}"), file=sys.stderr)
        return int(ExitCode.FAILURE)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
