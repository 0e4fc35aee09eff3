"""apt/dpkg access: lazy index refresh, presence checks, installs and version listings."""

import logging
from pathlib import Path

from dind_setup.commands import CommandRunner

logger = logging.getLogger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def parse_madison(output: str) -> list[str]:
    """Extract the version column from ``apt-cache madison`` output.

    Lines look like ``moby-cli | 20.10.21+azure-ubuntu20.04u1 | https://... Packages``.
    """
    versions: list[str] = []
    for line in output.splitlines():
        columns = line.split("|")
        if len(columns) < 2:
            continue
        version = columns[1].strip()
        if version and version not in versions:
            versions.append(version)
    return versions


class AptClient:
    """Thin wrapper around apt-get, apt-cache and dpkg."""

    def __init__(self, runner: CommandRunner, lists_dir: Path = Path("/var/lib/apt/lists")) -> None:
        self.runner = runner
        self.lists_dir = lists_dir
        self._refreshed = False

    def _lists_empty(self) -> bool:
        return not self.lists_dir.is_dir() or not any(self.lists_dir.iterdir())

    def update(self) -> None:
        """Refresh the package index unconditionally."""
        logger.info("Running apt-get update...")
        self.runner.stream(["apt-get", "update"], env=APT_ENV)
        self._refreshed = True

    def update_if_needed(self) -> None:
        """Refresh the package index once, and only when the lists cache is empty."""
        if not self._refreshed and self._lists_empty():
            self.update()
        else:
            logger.info("Skipping apt-get update.")

    def is_installed(self, *packages: str) -> bool:
        return self.runner.succeeds(["dpkg", "-s", *packages])

    def install(self, *packages: str, recommends: bool = False, check: bool = True) -> bool:
        """Install packages. Returns False on failure when ``check`` is False."""
        cmd = ["apt-get", "-y", "install"]
        if not recommends:
            cmd.append("--no-install-recommends")
        cmd.extend(packages)
        return self.runner.stream(cmd, check=check, env=APT_ENV) == 0

    def check_packages(self, *packages: str) -> None:
        """Install any of ``packages`` that dpkg does not already know about."""
        if not self.is_installed(*packages):
            self.update_if_needed()
            self.install(*packages)

    def available_versions(self, package: str) -> list[str]:
        """Versions apt can install for ``package``, most preferred first."""
        return parse_madison(self.runner.output(["apt-cache", "madison", package], check=False))
