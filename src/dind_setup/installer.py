"""Installation of the engine, CLI and compose tooling.

Each unit checks whether it is already present and skips itself if so;
nothing is upgraded or reinstalled implicitly.
"""

import logging
import shutil
from pathlib import Path

from dind_setup.alternatives import AlternativesRegistry
from dind_setup.apt import AptClient
from dind_setup.artifacts import ArtifactDownloader
from dind_setup.commands import CommandRunner
from dind_setup.config import ProvisionConfig
from dind_setup.platform_info import Platform
from dind_setup.repositories import EngineFamily
from dind_setup.settings import COMPOSE_REPOSITORY, COMPOSE_SWITCH_REPOSITORY
from dind_setup.shell_config import ShellRcConfig
from dind_setup.versions import (
    ENGINE_LATEST_ALIASES,
    LATEST_ALIASES,
    SKIP,
    EnginePins,
    GitTagSource,
    TagPattern,
    find_version_from_git_tags,
    is_full_version,
    resolve_engine_versions,
)

logger = logging.getLogger(__name__)

BASE_PACKAGES = (
    "apt-transport-https",
    "curl",
    "ca-certificates",
    "lxc",
    "pigz",
    "iptables",
    "gnupg2",
    "dirmngr",
)
PIPX_PREREQUISITES = ("python3-minimal", "python3-pip", "libffi-dev", "python3-venv")
PIP_SCRATCH_DIR = Path("/tmp/pip-tmp")
PIPX_HOME = Path("/usr/local/pipx")


class Installer:
    """Applies packages and release binaries for one provisioning run."""

    def __init__(
        self,
        config: ProvisionConfig,
        platform: Platform,
        runner: CommandRunner,
        apt: AptClient,
        downloader: ArtifactDownloader,
        tags: GitTagSource,
        alternatives: AlternativesRegistry,
        rc: ShellRcConfig,
    ) -> None:
        self.config = config
        self.platform = platform
        self.runner = runner
        self.apt = apt
        self.downloader = downloader
        self.tags = tags
        self.alternatives = alternatives
        self.rc = rc

    # Prerequisites

    def install_prerequisites(self) -> None:
        """Base tooling, git, and the legacy iptables backend when available."""
        self.apt.check_packages(*BASE_PACKAGES)
        if not self.runner.which("git"):
            self.apt.update_if_needed()
            self.apt.install("git", recommends=True)

        if self.runner.which("iptables-legacy"):
            self.alternatives.set("iptables", Path("/usr/sbin/iptables-legacy"))
            self.alternatives.set("ip6tables", Path("/usr/sbin/ip6tables-legacy"))

    # Engine and CLI

    def resolve_engine(self, family: EngineFamily) -> EnginePins:
        requested = self.config.docker_version
        if requested in ENGINE_LATEST_ALIASES:
            return EnginePins(engine=None, cli=None)
        context = f"OS {self.platform.os_id} {self.platform.codename} ({self.platform.architecture})"
        return resolve_engine_versions(
            requested,
            self.apt.available_versions(family.engine_package),
            self.apt.available_versions(family.cli_package),
            context=context,
        )

    def engine_installed(self) -> bool:
        return bool(self.runner.which("docker") and self.runner.which("dockerd"))

    def install_engine(self, family: EngineFamily, pins: EnginePins) -> bool:
        """Install the engine and CLI unless both binaries already exist.

        Returns:
            True if packages were installed
        """
        if self.engine_installed():
            logger.info("Docker / Moby CLI and Engine already installed.")
            return False

        self.apt.install(
            f"{family.cli_package}{pins.suffix('cli')}",
            *family.extra_packages,
            f"{family.engine_package}{pins.suffix('engine')}",
        )
        for package in family.optional_packages:
            if not self.apt.install(package, check=False):
                logger.warning(
                    f"(*) Package {package} not available for OS {self.platform.os_id} "
                    f"{self.platform.codename} ({self.platform.architecture}). Skipping."
                )

        self.rc.update("export DOCKER_BUILDKIT=1")
        return True

    # Compose v2 plugin

    def compose_plugin_installed(self) -> bool:
        return any((directory / "docker-compose").exists() for directory in self.config.compose_plugin_search_dirs)

    def install_compose_plugin(self) -> Path | None:
        """Install the Compose v2 CLI plugin from a verified GitHub release."""
        requested = self.config.compose_plugin_version
        if requested == SKIP:
            return None
        if self.compose_plugin_installed():
            logger.info("(*) Compose v2 plugin already installed. Skipping...")
            return None

        version = find_version_from_git_tags("DOCKER_COMPOSE_PLUGIN_VERSION", requested, self.tags, COMPOSE_REPOSITORY)
        logger.info(f"(*) Installing Compose v2 plugin {version}...")
        filename = f"docker-compose-linux-{self.platform.compose_architecture}"
        url = f"{COMPOSE_REPOSITORY}/releases/download/v{version}/{filename}"
        return self.downloader.install_verified(url, f"{url}.sha256", self.config.compose_plugin_dir / "docker-compose")

    # Compose v1

    def install_compose_v1(self) -> Path | None:
        """Install standalone Compose v1, from a verified binary on x86_64 or pipx elsewhere."""
        requested = self.config.compose_v1_version
        if requested == SKIP:
            return None
        if self.runner.which("docker-compose"):
            logger.info("(*) Compose v1 already installed. Skipping...")
            return None

        if not self.platform.is_reference_architecture:
            return self._install_compose_v1_with_pipx(requested)

        version = find_version_from_git_tags(
            "DOCKER_COMPOSE_V1_VERSION", requested, self.tags, COMPOSE_REPOSITORY, TagPattern(prefix="tags/")
        )
        logger.info(f"(*) Installing Compose v1 (docker-compose) {version}...")
        url = f"{COMPOSE_REPOSITORY}/releases/download/{version}/docker-compose-Linux-x86_64"
        return self.downloader.install_verified(url, f"{url}.sha256", self.config.local_bin_dir / "docker-compose")

    def _install_compose_v1_with_pipx(self, requested: str) -> Path:
        # No prebuilt binary for this architecture, so no checksum to verify either
        logger.info("(*) Installing Compose v1...")
        if not self.apt.is_installed(*PIPX_PREREQUISITES):
            self.apt.update_if_needed()
            self.apt.install(*PIPX_PREREQUISITES, recommends=True)

        PIPX_HOME.mkdir(parents=True, exist_ok=True)
        env = {
            "PIPX_HOME": str(PIPX_HOME),
            "PIPX_BIN_DIR": str(self.config.local_bin_dir),
            "PYTHONUSERBASE": str(PIP_SCRATCH_DIR),
            "PIP_CACHE_DIR": str(PIP_SCRATCH_DIR / "cache"),
        }
        pipx = self.runner.which("pipx")
        if not pipx:
            self.runner.stream(
                ["pip3", "install", "--disable-pip-version-check", "--no-warn-script-location", "--no-cache-dir", "--user", "pipx"],
                env=env,
            )
            pipx = str(PIP_SCRATCH_DIR / "bin" / "pipx")

        self.runner.stream(
            [pipx, "install", "--system-site-packages", "--pip-args", "--no-cache-dir --force-reinstall", pip_requirement(requested)],
            env=env,
        )
        shutil.rmtree(PIP_SCRATCH_DIR, ignore_errors=True)
        return self.config.local_bin_dir / "docker-compose"

    # compose-switch

    def install_compose_switch(self) -> Path | None:
        """Install compose-switch as the preferred ``docker-compose`` alternative.

        An existing v1 binary is renamed to ``docker-compose-v1`` and kept as
        the low-priority alternative.
        """
        requested = self.config.compose_switch_version
        switch_path = self.config.local_bin_dir / "compose-switch"
        if requested == SKIP or switch_path.exists():
            return None

        link = self.config.local_bin_dir / "docker-compose"
        current_v1 = self.runner.which("docker-compose")
        if current_v1:
            current_path = Path(current_v1)
            v1_path = current_path.parent / "docker-compose-v1"
            shutil.move(str(current_path), str(v1_path))
            self.alternatives.install(link, "docker-compose", v1_path, 1)

        version = find_version_from_git_tags("COMPOSE_SWITCH_VERSION", requested, self.tags, COMPOSE_SWITCH_REPOSITORY)
        logger.info(f"(*) Installing compose-switch {version}...")
        url = f"{COMPOSE_SWITCH_REPOSITORY}/releases/download/v{version}/docker-compose-linux-{self.platform.architecture}"
        # TODO: verify against a checksum once compose-switch releases publish one
        self.downloader.install_unverified(url, switch_path)
        self.alternatives.install(link, "docker-compose", switch_path, 99)
        return switch_path


def pip_requirement(requested: str) -> str:
    """pip requirement for docker-compose honoring a full or partial version."""
    if requested in LATEST_ALIASES:
        return "docker-compose"
    if is_full_version(requested):
        return f"docker-compose=={requested}"
    return f"docker-compose=={requested}.*"
