"""Host OS and CPU architecture detection."""

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path

from dind_setup.commands import CommandRunner
from dind_setup.exceptions import PreconditionError, UnsupportedArchitectureError

logger = logging.getLogger(__name__)

# dpkg architecture -> suffix used by docker/compose release artifacts
COMPOSE_ARCHITECTURES: dict[str, str] = {
    "amd64": "x86_64",
    "arm64": "aarch64",
}


@dataclass(frozen=True)
class Platform:
    """Facts about the image being provisioned.

    Attributes:
        os_id: ``ID`` from os-release (e.g. ``debian``, ``ubuntu``)
        codename: ``VERSION_CODENAME`` from os-release (e.g. ``bookworm``)
        architecture: dpkg architecture (``amd64``/``arm64``)
        compose_architecture: architecture suffix of compose release binaries
    """

    os_id: str
    codename: str
    architecture: str
    compose_architecture: str

    @property
    def is_reference_architecture(self) -> bool:
        """Compose v1 only ships prebuilt, checksummed binaries for x86_64."""
        return self.compose_architecture == "x86_64"


def compose_architecture_for(architecture: str) -> str:
    """Map a dpkg architecture to its compose binary suffix.

    Raises:
        UnsupportedArchitectureError: for anything but amd64/arm64
    """
    try:
        return COMPOSE_ARCHITECTURES[architecture]
    except KeyError:
        raise UnsupportedArchitectureError(architecture) from None


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release ``KEY=value`` lines, honoring shell quoting."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw = line.partition("=")
        try:
            parts = shlex.split(raw)
        except ValueError:
            parts = [raw.strip("\"'")]
        values[key.strip()] = parts[0] if parts else ""
    return values


def detect_platform(runner: CommandRunner, os_release_path: Path = Path("/etc/os-release")) -> Platform:
    """Read os-release and ask dpkg for the architecture."""
    try:
        release = parse_os_release(os_release_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise PreconditionError(f"Unable to read {os_release_path}: {e}") from e

    os_id = release.get("ID", "")
    codename = release.get("VERSION_CODENAME", "")
    if not os_id or not codename:
        raise PreconditionError(f"{os_release_path} does not define ID and VERSION_CODENAME")

    architecture = runner.output(["dpkg", "--print-architecture"]).strip()
    compose_architecture = compose_architecture_for(architecture)
    logger.debug(f"Detected {os_id} {codename} ({architecture})")
    return Platform(os_id=os_id, codename=codename, architecture=architecture, compose_architecture=compose_architecture)
