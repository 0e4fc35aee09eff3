"""
Custom exception classes for provisioning operations.

This module defines the exception hierarchy used throughout the provisioner
for consistent error handling and reporting. Every error maps to exit code 1.
"""


class ProvisionError(Exception):
    """Base exception for dind-setup errors."""

    exit_code = 1


class PreconditionError(ProvisionError):
    """The host cannot be provisioned (not root, unsupported platform)."""

    pass


class UnsupportedArchitectureError(PreconditionError):
    """The dpkg architecture has no matching compose build."""

    def __init__(self, architecture: str) -> None:
        super().__init__(f"(!) Architecture {architecture} not supported.")
        self.architecture = architecture


class VersionResolutionError(ProvisionError):
    """No candidate version satisfies the requested selector."""

    def __init__(self, name: str, requested: str, candidates: list[str], message: str | None = None) -> None:
        if message is None:
            message = f"Invalid {name} value: {requested}\nValid values:"
        listing = "\n".join(candidates)
        super().__init__(f"{message}\n{listing}")
        self.name = name
        self.requested = requested
        self.candidates = candidates


class ChecksumMismatchError(ProvisionError):
    """A downloaded artifact does not match its published SHA-256."""

    def __init__(self, filename: str, expected: str, actual: str) -> None:
        super().__init__(f"{filename}: FAILED (expected sha256 {expected}, got {actual})")
        self.filename = filename
        self.expected = expected
        self.actual = actual


class CommandError(ProvisionError):
    """An external command exited non-zero."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str = "") -> None:
        message = f"Command failed with exit code {returncode}: {' '.join(cmd)}"
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        super().__init__(message)
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class TemplateError(ProvisionError):
    """The init script template could not be rendered."""

    pass


class DownloadError(ProvisionError):
    """An essential download (signing key, tag list, release artifact) failed."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
