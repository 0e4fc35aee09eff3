"""Blocking execution of external tools with fail-fast error reporting."""

import logging
import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from dind_setup.exceptions import CommandError
from dind_setup.running_process import RunningProcess

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs external commands, raising CommandError on non-zero exit.

    Every provisioning step goes through one runner so tests can substitute a
    fake that records commands instead of executing them.
    """

    def __init__(self, extra_env: Mapping[str, str] | None = None) -> None:
        self.extra_env = dict(extra_env or {})

    def _env(self, env: Mapping[str, str] | None) -> dict[str, str]:
        merged = os.environ.copy()
        merged.update(self.extra_env)
        if env:
            merged.update(env)
        return merged

    def run(
        self,
        cmd: Sequence[str | Path],
        check: bool = True,
        input_bytes: bytes | None = None,
        env: Mapping[str, str] | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """Run a command to completion and capture its output.

        Args:
            cmd: Command and arguments
            check: Raise CommandError when the command exits non-zero
            input_bytes: Optional data written to the command's stdin
            env: Extra environment variables for this command only

        Returns:
            The completed process with captured stdout/stderr bytes
        """
        args = [str(arg) for arg in cmd]
        logger.debug(f"Running: {' '.join(args)}")
        try:
            result = subprocess.run(
                args,
                input=input_bytes,
                capture_output=True,
                env=self._env(env),
                check=False,
            )
        except FileNotFoundError as e:
            raise CommandError(args, 127, str(e)) from e

        if check and result.returncode != 0:
            raise CommandError(args, result.returncode, result.stderr.decode(errors="replace"))
        return result

    def output(self, cmd: Sequence[str | Path], check: bool = True) -> str:
        """Run a command and return its decoded stdout."""
        return self.run(cmd, check=check).stdout.decode(errors="replace")

    def succeeds(self, cmd: Sequence[str | Path]) -> bool:
        """Return True when the command exits zero. Never raises for exit status."""
        return self.run(cmd, check=False).returncode == 0

    def stream(self, cmd: Sequence[str | Path], check: bool = True, env: Mapping[str, str] | None = None) -> int:
        """Run a long command with its output relayed live.

        Returns:
            The exit code (only non-zero when ``check`` is False)
        """
        args = [str(arg) for arg in cmd]
        logger.info(f"Running: {' '.join(args)}")
        try:
            process = RunningProcess.run_streaming(args, env=self._env(env))
        except FileNotFoundError as e:
            raise CommandError(args, 127, str(e)) from e

        returncode = process.returncode if process.returncode is not None else 1
        if check and returncode != 0:
            raise CommandError(args, returncode, process.stderr_text)
        return returncode

    def which(self, name: str) -> str | None:
        """Locate an executable on PATH."""
        return shutil.which(name)
