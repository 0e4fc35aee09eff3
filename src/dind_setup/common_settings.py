"""Best-effort central settings shared by the dev container script library.

The settings file is a list of ``KEY="value"`` lines. Any failure to fetch it
is logged and ignored: the built-in defaults stay in effect.
"""

import logging
import re

import httpx

from dind_setup.settings import COMMON_SETTINGS_URL, HTTP_TIMEOUT

logger = logging.getLogger(__name__)


def parse_settings(text: str) -> dict[str, str]:
    """Parse ``KEY="value"`` (or unquoted ``KEY=value``) lines."""
    settings: dict[str, str] = {}
    for match in re.finditer(r'^\s*([A-Za-z_][A-Za-z0-9_]*)="?([^"\n]+)"?\s*$', text, re.MULTILINE):
        settings[match.group(1)] = match.group(2).strip()
    return settings


class CommonSettings:
    """Lazily downloaded central settings with local defaults."""

    def __init__(self, url: str = COMMON_SETTINGS_URL, client: httpx.Client | None = None) -> None:
        self.url = url
        self.client = client
        self._values: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._values is not None:
            return self._values
        self._values = {}
        try:
            if self.client is not None:
                response = self.client.get(self.url, timeout=HTTP_TIMEOUT)
            else:
                response = httpx.get(self.url, timeout=HTTP_TIMEOUT, follow_redirects=True)
            response.raise_for_status()
            self._values = parse_settings(response.text)
        except httpx.HTTPError as e:
            logger.warning(f"Could not download settings file. Skipping. ({e})")
        return self._values

    def get(self, key: str, default: str) -> str:
        """Return the published value for ``key`` or ``default``."""
        value = self._load().get(key) or default
        logger.info(f"{key}={value}")
        return value
