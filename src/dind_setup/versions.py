"""Version selection against apt package listings and git tag lists.

Two strategies are used:

- Engine/CLI packages are matched against ``apt-cache madison`` output with a
  regex that tolerates Debian epochs and revision suffixes (the Microsoft
  repository appends ``+azure`` and similar).
- Release artifacts (compose, compose-switch) are matched against the tags of
  their GitHub repository, newest first, where the requested token may be a
  version prefix (``2.2`` selects the newest ``2.2.x``).

Resolution is pure: functions take the candidate list and return a value or
raise VersionResolutionError listing every candidate.
"""

import logging
import re
from dataclasses import dataclass
from typing import NamedTuple

from packaging.version import InvalidVersion, Version

from dind_setup.commands import CommandRunner
from dind_setup.exceptions import VersionResolutionError

logger = logging.getLogger(__name__)

LATEST_ALIASES = ("latest", "current", "lts")
ENGINE_LATEST_ALIASES = ("latest", "lts", "stable")
SKIP = "none"


@dataclass(frozen=True)
class TagPattern:
    """How versions are spelled in a repository's tags.

    Attributes:
        prefix: Text preceding the numeric version (``tags/v`` matches ``refs/tags/v2.20.0``)
        separator: Separator between numeric components in the tag
        last_part_optional: Accept two-component versions as well
    """

    prefix: str = "tags/v"
    separator: str = "."
    last_part_optional: bool = False

    def regex(self) -> re.Pattern[str]:
        sep = re.escape(self.separator)
        last_part = f"(?:{sep}[0-9]+)?" if self.last_part_optional else f"{sep}[0-9]+"
        return re.compile(rf"{re.escape(self.prefix)}([0-9]+{sep}[0-9]+{last_part})$")


def _version_key(value: str) -> Version:
    try:
        return Version(value)
    except InvalidVersion:
        return Version("0")


def sort_versions(versions: list[str]) -> list[str]:
    """Sort newest first by version order (``1.10.0`` before ``1.9.0``)."""
    return sorted(set(versions), key=_version_key, reverse=True)


def parse_tag_versions(ls_remote_output: str, pattern: TagPattern | None = None) -> list[str]:
    """Extract normalized versions from ``git ls-remote --tags`` output.

    Peeled refs (``^{}``) and tags that do not fit the pattern are ignored.
    """
    pattern = pattern or TagPattern()
    regex = pattern.regex()
    versions: list[str] = []
    for line in ls_remote_output.splitlines():
        match = regex.search(line.strip())
        if match:
            versions.append(match.group(1).replace(" ", "").replace(pattern.separator, "."))
    return sort_versions(versions)


def is_full_version(requested: str) -> bool:
    """True for an already fully specified three-part version."""
    return requested.count(".") == 2


def resolve_version(requested: str, candidates: list[str], name: str = "version") -> str:
    """Pick a concrete version from newest-first candidates.

    Args:
        requested: ``latest``/``current``/``lts``, a version prefix or a full version
        candidates: Known versions, newest first
        name: Label used in the error message

    Returns:
        The selected candidate

    Raises:
        VersionResolutionError: when nothing matches or ``none`` was requested
    """
    selected: str | None = None
    if requested == SKIP:
        selected = None
    elif is_full_version(requested):
        selected = requested
    elif requested in LATEST_ALIASES:
        selected = candidates[0] if candidates else None
    else:
        prefix = re.compile(rf"^{re.escape(requested)}(\.|\s|$)")
        selected = next((candidate for candidate in candidates if prefix.match(candidate)), None)

    if not selected or selected not in candidates:
        raise VersionResolutionError(name, requested, candidates)
    return selected


class GitTagSource:
    """Lists release versions from a remote git repository's tags."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def list_versions(self, repository: str, pattern: TagPattern | None = None) -> list[str]:
        output = self.runner.output(["git", "ls-remote", "--tags", repository])
        return parse_tag_versions(output, pattern)


def find_version_from_git_tags(
    name: str,
    requested: str,
    source: GitTagSource,
    repository: str,
    pattern: TagPattern | None = None,
) -> str:
    """Resolve ``requested`` against the tags of ``repository``."""
    if requested == SKIP:
        raise VersionResolutionError(name, requested, [])
    candidates = source.list_versions(repository, pattern)
    version = resolve_version(requested, candidates, name)
    logger.info(f"{name}={version}")
    return version


class EnginePins(NamedTuple):
    """apt version pins for the engine and CLI packages (None means newest)."""

    engine: str | None
    cli: str | None

    def suffix(self, which: str) -> str:
        value = self.engine if which == "engine" else self.cli
        return f"={value}" if value else ""


def build_apt_version_regex(requested: str) -> re.Pattern[str]:
    """Match ``requested`` as the leading part of a Debian package version.

    See deb-version(5): an optional ``epoch:`` precedes the upstream version,
    which may be followed by ``.``, ``+``, ``~``, ``:`` or ``-`` suffixes.
    """
    escaped = requested.replace(".", r"\.").replace("+", r"\+")
    return re.compile(rf"^(.+:)?{escaped}([.+ ~:-]|$)")


def match_apt_version(requested: str, available: list[str]) -> str | None:
    """First available version (apt preference order) matching ``requested``."""
    regex = build_apt_version_regex(requested)
    return next((version for version in available if regex.search(version)), None)


def strip_epoch(version: str) -> str:
    return version.split(":", 1)[1] if ":" in version else version


def resolve_engine_versions(
    requested: str,
    engine_versions: list[str],
    cli_versions: list[str],
    context: str = "",
) -> EnginePins:
    """Resolve the engine and CLI pins together.

    Both packages must match; a partial match is an error rather than a
    silent fallback to the newest CLI or engine.
    """
    if requested in ENGINE_LATEST_ALIASES:
        return EnginePins(engine=None, cli=None)

    engine = match_apt_version(requested, engine_versions)
    cli = match_apt_version(requested, cli_versions)
    if not engine or not cli:
        where = f" on {context}" if context else ""
        raise VersionResolutionError(
            "DOCKER_VERSION",
            requested,
            [strip_epoch(version) for version in cli_versions],
            message=f'(!) No full or partial Docker / Moby version match found for "{requested}"{where}. Available versions:',
        )
    logger.info(f"Engine version: {engine}")
    logger.info(f"CLI version: {cli}")
    return EnginePins(engine=engine, cli=cli)
