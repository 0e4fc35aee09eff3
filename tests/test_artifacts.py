"""Tests for release downloads and checksum verification."""

import hashlib
import shutil
import tempfile
import unittest
from pathlib import Path

from mocks import fake_downloader

from dind_setup.artifacts import parse_checksum_file, verify_checksum
from dind_setup.exceptions import ChecksumMismatchError, DownloadError, ProvisionError

URL = "https://github.com/docker/compose/releases/download/v2.20.3/docker-compose-linux-x86_64"
PAYLOAD = b"\x7fELF compose binary"
DIGEST = hashlib.sha256(PAYLOAD).hexdigest()


class TestParseChecksumFile(unittest.TestCase):
    """Test sha256sum file parsing."""

    def test_text_mode_entry(self) -> None:
        self.assertEqual(parse_checksum_file(f"{DIGEST}  docker-compose-linux-x86_64\n", "docker-compose-linux-x86_64"), DIGEST)

    def test_binary_mode_entry(self) -> None:
        self.assertEqual(parse_checksum_file(f"{DIGEST} *docker-compose-linux-x86_64\n", "docker-compose-linux-x86_64"), DIGEST)

    def test_bare_digest(self) -> None:
        self.assertEqual(parse_checksum_file(f"{DIGEST.upper()}\n", "anything"), DIGEST)

    def test_missing_entry(self) -> None:
        with self.assertRaises(ProvisionError):
            parse_checksum_file(f"{DIGEST}  other-file\n{DIGEST}  another\n", "docker-compose-linux-x86_64")


class TestInstallVerified(unittest.TestCase):
    """Test download, verification and placement."""

    def setUp(self) -> None:
        self.test_dir = Path(tempfile.mkdtemp())
        self.download_dir = self.test_dir / "tmp"
        self.target = self.test_dir / "cli-plugins" / "docker-compose"

    def tearDown(self) -> None:
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_valid_artifact_installed_executable(self) -> None:
        """A matching digest moves the file into place with mode 0755."""
        downloader = fake_downloader({URL: PAYLOAD, f"{URL}.sha256": f"{DIGEST}  docker-compose-linux-x86_64\n".encode()}, self.download_dir)
        downloader.install_verified(URL, f"{URL}.sha256", self.target)
        self.assertEqual(self.target.read_bytes(), PAYLOAD)
        self.assertEqual(self.target.stat().st_mode & 0o777, 0o755)
        self.assertFalse((self.download_dir / "docker-compose-linux-x86_64").exists())

    def test_corrupted_artifact_never_reaches_target(self) -> None:
        """One flipped byte aborts the install and leaves no file behind."""
        corrupted = bytes([PAYLOAD[0] ^ 0xFF]) + PAYLOAD[1:]
        downloader = fake_downloader({URL: corrupted, f"{URL}.sha256": f"{DIGEST}  docker-compose-linux-x86_64\n".encode()}, self.download_dir)
        with self.assertRaises(ChecksumMismatchError) as ctx:
            downloader.install_verified(URL, f"{URL}.sha256", self.target)
        self.assertNotEqual(ctx.exception.exit_code, 0)
        self.assertFalse(self.target.exists())
        self.assertFalse((self.download_dir / "docker-compose-linux-x86_64").exists())

    def test_missing_checksum_file(self) -> None:
        """A missing checksum file is a download failure and the scratch file is removed."""
        downloader = fake_downloader({URL: PAYLOAD}, self.download_dir)
        with self.assertRaises(DownloadError):
            downloader.install_verified(URL, f"{URL}.sha256", self.target)
        self.assertFalse(self.target.exists())
        self.assertFalse((self.download_dir / "docker-compose-linux-x86_64").exists())

    def test_missing_artifact(self) -> None:
        """A 404 on the artifact raises DownloadError."""
        downloader = fake_downloader({}, self.download_dir)
        with self.assertRaises(DownloadError):
            downloader.install_verified(URL, f"{URL}.sha256", self.target)


class TestVerifyChecksum(unittest.TestCase):
    """Test direct digest verification."""

    def test_mismatch_removes_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "artifact"
            path.write_bytes(b"tampered")
            with self.assertRaises(ChecksumMismatchError):
                verify_checksum(path, DIGEST)
            self.assertFalse(path.exists())


if __name__ == "__main__":
    unittest.main()
