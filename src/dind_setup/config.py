"""Immutable provisioning configuration built once at start-up."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dind_setup import settings
from dind_setup.cli_args import Args


def is_true(value: str | None) -> bool:
    """Only the literal ``true`` enables a flag."""
    return value == "true"


@dataclass(frozen=True)
class ProvisionConfig:
    """Everything a provisioning run needs, passed explicitly to each step.

    Filesystem locations default to the real system paths; tests point them
    at a temporary directory.
    """

    enable_nonroot_docker: bool = True
    username: str = "automatic"
    use_moby: bool = True
    docker_version: str = "latest"
    compose_plugin_version: str = "latest"
    compose_switch_version: str = "latest"
    compose_v1_version: str = "1"
    update_rc: bool = True

    init_script_path: Path = Path(settings.INIT_SCRIPT_PATH)
    keyrings_dir: Path = Path(settings.KEYRINGS_DIR)
    sources_dir: Path = Path(settings.SOURCES_LIST_DIR)
    apt_lists_dir: Path = Path(settings.APT_LISTS_DIR)
    local_bin_dir: Path = Path(settings.LOCAL_BIN_DIR)
    compose_plugin_dir: Path = Path(settings.COMPOSE_PLUGIN_DIR)
    compose_plugin_search_dirs: tuple[Path, ...] = field(default_factory=lambda: tuple(Path(p) for p in settings.COMPOSE_PLUGIN_SEARCH_DIRS))
    rc_files: tuple[Path, ...] = field(default_factory=lambda: tuple(Path(p) for p in settings.RC_FILES))
    download_dir: Path = Path(settings.DOWNLOAD_DIR)
    os_release_path: Path = Path("/etc/os-release")

    @classmethod
    def from_args(cls, args: Args, environ: Mapping[str, str] | None = None) -> "ProvisionConfig":
        """Build the configuration from parsed arguments and the environment."""
        environ = os.environ if environ is None else environ
        return cls(
            enable_nonroot_docker=is_true(args.enable_nonroot_docker),
            username=args.username,
            use_moby=is_true(args.use_moby),
            docker_version=args.docker_version,
            compose_plugin_version=args.compose_plugin_version,
            compose_switch_version=args.compose_switch_version,
            compose_v1_version=args.compose_v1_version,
            update_rc=is_true(environ.get(settings.UPDATE_RC, "true")),
        )
