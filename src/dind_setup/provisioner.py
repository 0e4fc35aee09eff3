"""Provisioning run: the ordered sequence of steps, stopping at the first failure."""

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from dind_setup import init_script
from dind_setup.alternatives import AlternativesRegistry
from dind_setup.apt import APT_ENV, AptClient
from dind_setup.artifacts import ArtifactDownloader
from dind_setup.commands import CommandRunner
from dind_setup.common_settings import CommonSettings
from dind_setup.config import ProvisionConfig
from dind_setup.exceptions import PreconditionError
from dind_setup.installer import Installer
from dind_setup.platform_info import Platform, detect_platform
from dind_setup.repositories import configure_repository, engine_family
from dind_setup.shell_config import ShellRcConfig
from dind_setup.users import AccountDatabase, grant_docker_access, resolve_username
from dind_setup.versions import GitTagSource

logger = logging.getLogger(__name__)

NOT_ROOT_MESSAGE = 'Script must be run as root. Use sudo, su, or add "USER root" to your Dockerfile before running this script.'


@dataclass
class ProvisionResult:
    """What a run did, for logging and tests."""

    username: str
    platform: Platform
    engine_family: str
    installed: list[str] = field(default_factory=list)
    init_script: Path | None = None


def require_root(geteuid: Callable[[], int] | None = None) -> None:
    euid = geteuid() if geteuid is not None else os.geteuid()
    if euid != 0:
        raise PreconditionError(NOT_ROOT_MESSAGE)


class Provisioner:
    """Wires the external-tool clients together and runs the steps in order.

    Every collaborator can be injected; the defaults talk to the real system.
    """

    def __init__(
        self,
        config: ProvisionConfig,
        runner: CommandRunner | None = None,
        accounts: AccountDatabase | None = None,
        downloader: ArtifactDownloader | None = None,
        settings: CommonSettings | None = None,
        apt: AptClient | None = None,
        tags: GitTagSource | None = None,
        alternatives: AlternativesRegistry | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or CommandRunner(extra_env=APT_ENV)
        self.accounts = accounts or AccountDatabase()
        self.downloader = downloader or ArtifactDownloader(download_dir=config.download_dir)
        self.settings = settings or CommonSettings()
        self.apt = apt or AptClient(self.runner, lists_dir=config.apt_lists_dir)
        self.tags = tags or GitTagSource(self.runner)
        self.alternatives = alternatives or AlternativesRegistry(self.runner)
        self.rc = ShellRcConfig(
            enabled=config.update_rc,
            bashrc=config.rc_files[0],
            optional_rc_files=list(config.rc_files[1:]),
        )

    def run(self) -> ProvisionResult:
        config = self.config
        username = resolve_username(config.username, self.accounts)
        logger.info(f"Non-root user: {username}")

        platform = detect_platform(self.runner, config.os_release_path)
        family = engine_family(config.use_moby)
        result = ProvisionResult(username=username, platform=platform, engine_family=family.name)

        installer = Installer(
            config=config,
            platform=platform,
            runner=self.runner,
            apt=self.apt,
            downloader=self.downloader,
            tags=self.tags,
            alternatives=self.alternatives,
            rc=self.rc,
        )
        installer.install_prerequisites()

        configure_repository(
            family,
            platform,
            self.runner,
            self.downloader,
            self.settings,
            keyrings_dir=config.keyrings_dir,
            sources_dir=config.sources_dir,
        )
        self.apt.update()

        pins = installer.resolve_engine(family)
        if installer.install_engine(family, pins):
            result.installed.append("engine")
        if installer.install_compose_plugin():
            result.installed.append("compose-plugin")
        if installer.install_compose_v1():
            result.installed.append("compose-v1")
        if installer.install_compose_switch():
            result.installed.append("compose-switch")

        if init_script.is_installed(config.init_script_path):
            logger.info(f"{config.init_script_path} already exists, so exiting.")
            return result
        logger.info("(*) docker-init doesnt exist, adding...")

        if config.enable_nonroot_docker:
            grant_docker_access(username, self.runner, self.accounts)

        result.init_script = init_script.write_init_script(config.init_script_path, username, self.runner)
        return result

    def close(self) -> None:
        self.downloader.close()
