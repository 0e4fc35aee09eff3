"""Pytest configuration and fixtures."""

import logging

import pytest  # pyright: ignore[reportMissingImports]


@pytest.fixture(autouse=True)  # pyright: ignore[reportUnknownMemberType, reportUntypedFunctionDecorator]
def quiet_httpx() -> None:
    """Keep per-request httpx lines out of captured test logs."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
