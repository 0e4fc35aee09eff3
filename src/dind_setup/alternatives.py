"""Debian alternatives registration (update-alternatives)."""

import logging
from pathlib import Path

from dind_setup.commands import CommandRunner

logger = logging.getLogger(__name__)


class AlternativesRegistry:
    """Priority-ranked dispatch of one command name among several binaries."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def install(self, link: Path, name: str, path: Path, priority: int) -> None:
        """Register ``path`` as a candidate for ``link``; the highest priority wins in auto mode."""
        logger.info(f"Registering {path} as {name} alternative (priority {priority})")
        self.runner.run(["update-alternatives", "--install", str(link), name, str(path), str(priority)])

    def set(self, name: str, path: Path) -> None:
        """Pin ``name`` to ``path`` (manual mode)."""
        self.runner.run(["update-alternatives", "--set", name, str(path)])
