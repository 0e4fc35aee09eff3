"""Release artifact download and SHA-256 verification."""

import hashlib
import logging
import shutil
from pathlib import Path

import httpx

from dind_setup.exceptions import ChecksumMismatchError, DownloadError, ProvisionError
from dind_setup.settings import DOWNLOAD_DIR, HTTP_TIMEOUT

logger = logging.getLogger(__name__)


def parse_checksum_file(text: str, filename: str) -> str:
    """Find the digest for ``filename`` in ``sha256sum`` output format.

    Accepts ``<digest>  <name>``, ``<digest> *<name>`` and a bare digest.
    """
    lines = [line.split() for line in text.splitlines() if line.strip()]
    for parts in lines:
        if len(parts) >= 2 and parts[1].lstrip("*") == filename:
            return parts[0].lower()
    if len(lines) == 1 and len(lines[0]) == 1:
        return lines[0][0].lower()
    raise ProvisionError(f"No checksum for {filename} in checksum file")


def sha256_of(path: Path) -> str:
    hasher = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def verify_checksum(path: Path, expected: str) -> None:
    """Raise ChecksumMismatchError (after deleting ``path``) on mismatch."""
    actual = sha256_of(path)
    if actual != expected.lower():
        path.unlink(missing_ok=True)
        raise ChecksumMismatchError(path.name, expected, actual)
    logger.info(f"{path.name}: OK")


class ArtifactDownloader:
    """Downloads release files over HTTPS into a scratch directory."""

    def __init__(self, client: httpx.Client | None = None, download_dir: Path = Path(DOWNLOAD_DIR)) -> None:
        self.client = client or httpx.Client(timeout=HTTP_TIMEOUT, follow_redirects=True)
        self.download_dir = download_dir

    def fetch_bytes(self, url: str) -> bytes:
        logger.debug(f"GET {url}")
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DownloadError(url, str(e)) from e
        return response.content

    def fetch_text(self, url: str) -> str:
        return self.fetch_bytes(url).decode("utf-8", errors="replace")

    def download(self, url: str, destination: Path) -> Path:
        """Stream ``url`` to ``destination``. A partial file is removed on error."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Downloading {url} -> {destination}")
        try:
            with self.client.stream("GET", url) as response:
                response.raise_for_status()
                with open(destination, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            destination.unlink(missing_ok=True)
            raise DownloadError(url, str(e)) from e
        return destination

    def install_verified(self, url: str, checksum_url: str, target: Path) -> Path:
        """Download ``url``, check it against ``checksum_url`` and move it to ``target``.

        Nothing is written to ``target`` unless the digest matches.
        """
        filename = url.rsplit("/", 1)[-1]
        scratch = self.download_dir / filename
        self.download(url, scratch)
        try:
            expected = parse_checksum_file(self.fetch_text(checksum_url), filename)
        except Exception:
            scratch.unlink(missing_ok=True)
            raise
        verify_checksum(scratch, expected)
        return self._place(scratch, target)

    def install_unverified(self, url: str, target: Path) -> Path:
        """Download ``url`` straight to ``target`` (no published checksum exists)."""
        filename = url.rsplit("/", 1)[-1]
        scratch = self.download(url, self.download_dir / filename)
        return self._place(scratch, target)

    def _place(self, scratch: Path, target: Path) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(scratch), str(target))
        target.chmod(0o755)
        return target

    def close(self) -> None:
        self.client.close()
