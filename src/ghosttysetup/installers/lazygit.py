"""lazygit installation from GitHub release archives."""

from __future__ import annotations

import json
import logging as py_logging
import tempfile
from pathlib import Path
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ghosttysetup.errors import ExitCode, GhosttySetupError
from ghosttysetup.installers.context import InstallContext

logger = py_logging.getLogger(__name__)

LATEST_RELEASE_URL = "https://api.github.com/repos/jesseduffield/lazygit/releases/latest"
DOWNLOAD_URL = "https://github.com/jesseduffield/lazygit/releases/latest/download/lazygit_{version}_Linux_{arch}.tar.gz"
INSTALL_TARGET = Path("/usr/local/bin/lazygit")
PPA_NAME = "ppa:lazygit-team/release"

_ARCH_NAMES = {"x86_64": "x86_64", "amd64": "x86_64", "aarch64": "arm64", "arm64": "arm64"}

HttpResponse = tuple[int, str]


class HttpRequester(Protocol):
    def __call__(self, url: str, headers: dict[str, str]) -> HttpResponse: ...


def default_requester(url: str, headers: dict[str, str]) -> HttpResponse:
    request = Request(url, headers=headers, method="GET")
    try:
        with urlopen(request, timeout=20) as response:  # nosec B310
            status = int(getattr(response, "status", response.getcode()))
            return status, response.read().decode("utf-8")
    except HTTPError as exc:
        payload = exc.read().decode("utf-8", errors="replace") if exc.fp is not None else ""
        return exc.code, payload
    except URLError as exc:
        raise GhosttySetupError(
            "Could not reach the GitHub API.",
            code=ExitCode.FAILURE,
            hint=str(exc.reason) or "Check your network connection.",
        ) from exc


def latest_version(requester: HttpRequester = default_requester) -> str:
    status, body = requester(LATEST_RELEASE_URL, {"Accept": "application/vnd.github+json"})
    if status != 200:
        raise GhosttySetupError(
            f"GitHub API returned HTTP {status} for the latest lazygit release.",
            code=ExitCode.FAILURE,
            hint="Install lazygit manually from https://github.com/jesseduffield/lazygit",
        )
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        payload = None
    tag = payload.get("tag_name") if isinstance(payload, dict) else None
    if not isinstance(tag, str) or not tag.strip():
        raise GhosttySetupError(
            "Latest lazygit release has no tag name.",
            code=ExitCode.FAILURE,
            hint="Install lazygit manually from https://github.com/jesseduffield/lazygit",
        )
    return tag.strip().removeprefix("v")


def release_arch(machine: str) -> str:
    return _ARCH_NAMES.get(machine.lower(), machine)


def install_from_release(context: InstallContext, requester: HttpRequester = default_requester) -> None:
    version = "latest" if context.dry_run else latest_version(requester)
    url = DOWNLOAD_URL.format(version=version, arch=release_arch(context.host.arch))
    with tempfile.TemporaryDirectory(prefix="lazygit-") as workdir:
        archive = Path(workdir) / "lazygit.tar.gz"
        context.run(["curl", "-fsSLo", str(archive), url])
        context.run(["tar", "xf", str(archive), "-C", workdir, "lazygit"])
        context.run(["sudo", "install", str(Path(workdir) / "lazygit"), str(INSTALL_TARGET.parent)])
    logger.info("lazygit %s installed to %s", version, INSTALL_TARGET)
