"""
Mock utilities for testing.

This package provides fake implementations of the external tools the
provisioner drives (apt/dpkg, git, update-alternatives, the network).
"""

from .system import (
    FakeAccounts,
    FakeRunner,
    fake_downloader,
    ls_remote,
    make_config,
    mock_client,
    offline_settings,
)

__all__ = [
    "FakeAccounts",
    "FakeRunner",
    "fake_downloader",
    "ls_remote",
    "make_config",
    "mock_client",
    "offline_settings",
]
