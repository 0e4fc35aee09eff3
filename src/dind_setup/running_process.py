"""RunningProcess class for streaming package-manager output."""

import subprocess
import sys
import threading
from collections.abc import Callable
from typing import Any


class RunningProcess:
    """A process wrapper that streams output line by line while it runs.

    apt-get, pip and pipx can run for minutes during an image build, so their
    output is relayed as it arrives instead of being captured and dumped at
    the end. The last lines of stderr are kept for error reporting.
    """

    def __init__(
        self,
        cmd: list[str],
        env: dict[str, str] | None = None,
        cwd: str | None = None,
        stdout_callback: Callable[[str], None] | None = None,
        stderr_callback: Callable[[str], None] | None = None,
        stderr_tail: int = 20,
    ):
        """Initialize the RunningProcess.

        Args:
            cmd: Command and arguments to execute
            env: Environment variables for the process
            cwd: Working directory for the process
            stdout_callback: Optional callback for stdout lines (default: print to stdout)
            stderr_callback: Optional callback for stderr lines (default: print to stderr)
            stderr_tail: Number of trailing stderr lines to retain
        """
        self.cmd = cmd
        self.stdout_callback = stdout_callback or self._default_stdout_callback
        self.stderr_callback = stderr_callback or self._default_stderr_callback
        self.stderr_tail = stderr_tail
        self.stderr_lines: list[str] = []

        self.popen_kwargs: dict[str, Any] = {
            "stdout": subprocess.PIPE,
            "stderr": subprocess.PIPE,
            "text": True,
            "encoding": "utf-8",
            "errors": "replace",
            "bufsize": 1,  # Line buffered
        }
        if env is not None:
            self.popen_kwargs["env"] = env
        if cwd is not None:
            self.popen_kwargs["cwd"] = cwd

        self.process: subprocess.Popen[str] | None = None
        self.stdout_thread: threading.Thread | None = None
        self.stderr_thread: threading.Thread | None = None
        self.returncode: int | None = None

    def _default_stdout_callback(self, line: str) -> None:
        print(line.rstrip(), flush=True)

    def _default_stderr_callback(self, line: str) -> None:
        print(line.rstrip(), file=sys.stderr, flush=True)

    def _record_stderr(self, line: str) -> None:
        self.stderr_lines.append(line)
        if len(self.stderr_lines) > self.stderr_tail:
            del self.stderr_lines[0]
        self.stderr_callback(line)

    def _stream_output(self, stream: Any, callback: Callable[[str], None]) -> None:
        try:
            for line in iter(stream.readline, ""):
                if line:
                    callback(line)
        except (OSError, ValueError):
            # Stream closed under us; the process is gone
            pass

    def start(self) -> None:
        """Start the process and begin streaming output."""
        self.process = subprocess.Popen(self.cmd, **self.popen_kwargs)

        if self.process.stdout:
            self.stdout_thread = threading.Thread(target=self._stream_output, args=(self.process.stdout, self.stdout_callback), daemon=True)
            self.stdout_thread.start()

        if self.process.stderr:
            self.stderr_thread = threading.Thread(target=self._stream_output, args=(self.process.stderr, self._record_stderr), daemon=True)
            self.stderr_thread.start()

    def wait(self) -> int:
        """Wait for the process to complete and return the exit code."""
        if not self.process:
            raise RuntimeError("Process not started")

        self.returncode = self.process.wait()

        if self.stdout_thread:
            self.stdout_thread.join(timeout=1.0)
        if self.stderr_thread:
            self.stderr_thread.join(timeout=1.0)

        return self.returncode

    def run(self) -> int:
        """Start the process and wait for completion."""
        self.start()
        return self.wait()

    @property
    def stderr_text(self) -> str:
        """Trailing stderr output of the finished process."""
        return "".join(self.stderr_lines)

    @classmethod
    def run_streaming(
        cls,
        cmd: list[str],
        env: dict[str, str] | None = None,
        cwd: str | None = None,
        stdout_callback: Callable[[str], None] | None = None,
        stderr_callback: Callable[[str], None] | None = None,
    ) -> "RunningProcess":
        """Run a command with streaming output and return the finished process.

        Args:
            cmd: Command and arguments to execute
            env: Environment variables for the process
            cwd: Working directory for the process
            stdout_callback: Optional callback for stdout lines
            stderr_callback: Optional callback for stderr lines

        Returns:
            The finished RunningProcess (inspect ``returncode``/``stderr_text``)
        """
        process = cls(cmd=cmd, env=env, cwd=cwd, stdout_callback=stdout_callback, stderr_callback=stderr_callback)
        process.run()
        return process
