"""Shell rc configuration for interactive shells in the provisioned image.

Lines are appended to the system-wide bash and zsh rc files, once. A line
already present in a file is never appended again, so re-running the
provisioner leaves the files unchanged.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from dind_setup.settings import RC_FILES

logger = logging.getLogger(__name__)


@dataclass
class ShellRcConfig:
    """System-wide shell rc files to update.

    Attributes:
        enabled: Whether rc files may be modified at all (``UPDATE_RC``)
        bashrc: The bash rc file, created if missing
        optional_rc_files: Other rc files, only touched when they exist
    """

    enabled: bool = True
    bashrc: Path = Path(RC_FILES[0])
    optional_rc_files: list[Path] = field(default_factory=lambda: [Path(p) for p in RC_FILES[1:]])

    def _append_once(self, path: Path, line: str) -> bool:
        existing = path.read_text(encoding="utf-8") if path.exists() else ""
        if line in existing:
            return False
        with open(path, "a", encoding="utf-8") as f:
            f.write(f"{line}\n")
        return True

    def update(self, line: str) -> list[Path]:
        """Append ``line`` to every rc file that does not contain it yet.

        Returns:
            The files that were modified
        """
        if not self.enabled:
            return []

        logger.info(f"Updating {self.bashrc} and {', '.join(str(p) for p in self.optional_rc_files)}...")
        changed: list[Path] = []
        self.bashrc.parent.mkdir(parents=True, exist_ok=True)
        if self._append_once(self.bashrc, line):
            changed.append(self.bashrc)
        for rc_file in self.optional_rc_files:
            if rc_file.exists() and self._append_once(rc_file, line):
                changed.append(rc_file)
        return changed
