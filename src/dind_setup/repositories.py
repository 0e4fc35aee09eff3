"""Engine/CLI package families and their apt repositories."""

import logging
from dataclasses import dataclass
from pathlib import Path

from dind_setup.artifacts import ArtifactDownloader
from dind_setup.commands import CommandRunner
from dind_setup.common_settings import CommonSettings
from dind_setup.platform_info import Platform
from dind_setup.settings import DOCKER_GPG_KEYS_URI_TEMPLATE, MICROSOFT_GPG_KEYS_URI

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineFamily:
    """One of the two interchangeable engine/CLI package sets.

    Attributes:
        name: Short label used in log messages
        engine_package: Package providing dockerd
        cli_package: Package providing the docker CLI
        extra_packages: Installed alongside engine and CLI, unpinned
        optional_packages: Installed best-effort; failure only logs a warning
        keyring_name: File name under the keyrings directory
        source_list_name: File name under sources.list.d
    """

    name: str
    engine_package: str
    cli_package: str
    extra_packages: tuple[str, ...]
    optional_packages: tuple[str, ...]
    keyring_name: str
    source_list_name: str

    def key_url(self, platform: Platform, settings: CommonSettings) -> str:
        if self.name == "moby":
            return settings.get("MICROSOFT_GPG_KEYS_URI", MICROSOFT_GPG_KEYS_URI)
        return DOCKER_GPG_KEYS_URI_TEMPLATE.format(os_id=platform.os_id)

    def source_line(self, platform: Platform, keyring: Path) -> str:
        options = f"[arch={platform.architecture} signed-by={keyring}]"
        if self.name == "moby":
            url = f"https://packages.microsoft.com/repos/microsoft-{platform.os_id}-{platform.codename}-prod"
            return f"deb {options} {url} {platform.codename} main"
        return f"deb {options} https://download.docker.com/linux/{platform.os_id} {platform.codename} stable"


MOBY = EngineFamily(
    name="moby",
    engine_package="moby-engine",
    cli_package="moby-cli",
    extra_packages=("moby-buildx",),
    optional_packages=("moby-compose",),
    keyring_name="microsoft-archive-keyring.gpg",
    source_list_name="microsoft.list",
)

DOCKER_CE = EngineFamily(
    name="docker-ce",
    engine_package="docker-ce",
    cli_package="docker-ce-cli",
    extra_packages=(),
    optional_packages=(),
    keyring_name="docker-archive-keyring.gpg",
    source_list_name="docker.list",
)


def engine_family(use_moby: bool) -> EngineFamily:
    return MOBY if use_moby else DOCKER_CE


def configure_repository(
    family: EngineFamily,
    platform: Platform,
    runner: CommandRunner,
    downloader: ArtifactDownloader,
    settings: CommonSettings,
    keyrings_dir: Path,
    sources_dir: Path,
) -> Path:
    """Import the family's signing key and write its apt source entry.

    Returns:
        Path of the written source-list file
    """
    key_url = family.key_url(platform, settings)
    logger.info(f"Importing {family.name} repository key from {key_url}")
    armored = downloader.fetch_bytes(key_url)
    dearmored = runner.run(["gpg", "--dearmor"], input_bytes=armored).stdout

    keyrings_dir.mkdir(parents=True, exist_ok=True)
    keyring = keyrings_dir / family.keyring_name
    keyring.write_bytes(dearmored)

    sources_dir.mkdir(parents=True, exist_ok=True)
    source_list = sources_dir / family.source_list_name
    source_list.write_text(family.source_line(platform, keyring) + "\n", encoding="utf-8")
    return source_list
