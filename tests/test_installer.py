"""
Tests for the upgrade sequence.
"""

import builtins
import errno
import hashlib
import os
import shutil
import stat
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import httpx

from gwtm.config import raw_file_url, release_download_url
from gwtm.upgrade.errors import (
    AlreadyLatest,
    ChecksumMismatch,
    FilesystemError,
    InvalidVersion,
    ManifestEntryNotFound,
    NetworkError
)
from gwtm.upgrade.installer import (
    TEMP_BINARY_NAME,
    TEMP_MANIFEST_NAME,
    Upgrader,
    binary_name,
    install_binary
)

ARTIFACT = 'gwtm_Linux_x86_64'
NEW_BINARY = b'#!/bin/sh\necho gwtm 2.0.0\n'
OLD_BINARY = b'#!/bin/sh\necho gwtm 1.0.0\n'


class FakeReleaseServer:
    """Serves release assets for one version through httpx.MockTransport."""

    def __init__(self, version='2.0.0', payload=NEW_BINARY, manifest=None):
        digest = hashlib.sha256(payload).hexdigest()
        if manifest is None:
            manifest = f"{'f' * 64}  gwtm_Darwin_arm64\n{digest}  {ARTIFACT}\n"
        self.routes = {
            release_download_url(version, ARTIFACT): (200, payload),
            release_download_url(version, 'checksums.txt'): (200, manifest.encode()),
            raw_file_url(version, 'README.md'): (200, b'# gwtm\n'),
            raw_file_url(version, 'VERSION'): (200, f"{version}\n".encode()),
            raw_file_url(version, 'LICENSE'): (200, b'MIT License\n'),
        }
        self.requests = []

    def handler(self, request):
        self.requests.append(str(request.url))
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(404)
        status, content = route
        return httpx.Response(status, content=content)

    def client(self):
        return httpx.Client(transport=httpx.MockTransport(self.handler))


class TestBinaryName(unittest.TestCase):
    """Test binary_name."""

    def test_platforms(self):
        cases = [
            ('Linux', 'x86_64', 'gwtm_Linux_x86_64'),
            ('linux', 'amd64', 'gwtm_Linux_x86_64'),
            ('Linux', 'aarch64', 'gwtm_Linux_arm64'),
            ('Darwin', 'arm64', 'gwtm_Darwin_arm64'),
            ('Darwin', 'x86_64', 'gwtm_Darwin_x86_64'),
            ('Windows', 'AMD64', 'gwtm_Windows_x86_64.exe'),
            ('Windows', 'ARM64', 'gwtm_Windows_arm64.exe'),
        ]
        for system, machine, expected in cases:
            with self.subTest(system=system, machine=machine):
                self.assertEqual(binary_name(system, machine), expected)


class TestUpgrader(unittest.TestCase):
    """Test Upgrader.run."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)
        self.install_dir = self.temp_path / 'install'
        self.download_dir = self.temp_path / 'tmp'
        self.download_dir.mkdir()
        self.info = []
        self.warnings = []

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def make_upgrader(self, server):
        return Upgrader(
            self.install_dir,
            client=server.client(),
            temp_dir=self.download_dir,
            system='Linux',
            machine='x86_64'
        )

    def run_upgrade(self, server, current='1.0.0', latest='2.0.0'):
        upgrader = self.make_upgrader(server)
        return upgrader.run(current, latest, on_info=self.info.append, on_warning=self.warnings.append)

    def install_old_binary(self):
        self.install_dir.mkdir()
        binary = self.install_dir / 'gwtm'
        binary.write_bytes(OLD_BINARY)
        return binary

    def assert_temp_files_removed(self):
        self.assertFalse((self.download_dir / TEMP_BINARY_NAME).exists())
        self.assertFalse((self.download_dir / TEMP_MANIFEST_NAME).exists())

    def test_successful_upgrade(self):
        self.install_old_binary()
        server = FakeReleaseServer()

        plan = self.run_upgrade(server)

        binary = self.install_dir / 'gwtm'
        self.assertEqual(binary.read_bytes(), NEW_BINARY)
        self.assertEqual((self.install_dir / 'VERSION').read_text(), '2.0.0\n')
        self.assertTrue((self.install_dir / 'README.md').exists())
        self.assertTrue((self.install_dir / 'LICENSE').exists())
        self.assertEqual(plan.binary_name, ARTIFACT)
        self.assertEqual(plan.target_version, '2.0.0')
        self.assertIn('Binary downloaded', self.info)
        self.assertIn('Checksum verified', self.info)
        self.assertEqual(self.warnings, [])
        self.assert_temp_files_removed()

    @unittest.skipIf(os.name == 'nt', 'permission bits are not used on Windows')
    def test_installed_binary_is_executable(self):
        self.run_upgrade(FakeReleaseServer())
        mode = (self.install_dir / 'gwtm').stat().st_mode
        self.assertTrue(mode & stat.S_IXUSR)

    def test_creates_install_directory(self):
        self.install_dir = self.temp_path / 'nested' / 'install'
        self.run_upgrade(FakeReleaseServer())
        self.assertTrue((self.install_dir / 'gwtm').exists())

    def test_already_latest_makes_no_requests(self):
        server = FakeReleaseServer()
        for current, latest in [('1.0.0', '1.0.0'), ('2.0.0', '1.9.9'), ('1.0.0', '1.0.0-rc.1')]:
            with self.subTest(current=current, latest=latest):
                with self.assertRaises(AlreadyLatest):
                    self.run_upgrade(server, current=current, latest=latest)
        self.assertEqual(server.requests, [])
        self.assertFalse(self.install_dir.exists())

    def test_invalid_version(self):
        server = FakeReleaseServer()
        with self.assertRaises(InvalidVersion) as context:
            self.run_upgrade(server, current='dev')
        self.assertEqual(context.exception.step, 'parse current version')
        self.assertEqual(server.requests, [])

    def test_checksum_mismatch_leaves_binary_untouched(self):
        binary = self.install_old_binary()
        server = FakeReleaseServer(manifest=f"{'0' * 64}  {ARTIFACT}\n")

        with self.assertRaises(ChecksumMismatch) as context:
            self.run_upgrade(server)

        self.assertEqual(context.exception.step, 'verify checksum')
        self.assertEqual(binary.read_bytes(), OLD_BINARY)
        self.assertFalse((self.install_dir / 'VERSION').exists())
        self.assert_temp_files_removed()

    def test_missing_manifest_entry(self):
        server = FakeReleaseServer(manifest=f"{'0' * 64}  gwtm_Darwin_arm64\n")
        with self.assertRaises(ManifestEntryNotFound):
            self.run_upgrade(server)
        self.assertFalse(self.install_dir.exists())
        self.assert_temp_files_removed()

    def test_binary_download_failure(self):
        server = FakeReleaseServer(version='3.0.0')
        with self.assertRaises(NetworkError) as context:
            self.run_upgrade(server)
        self.assertEqual(context.exception.step, 'download binary')
        self.assertEqual(context.exception.status_code, 404)
        self.assertIn('failed to download binary', str(context.exception))
        self.assertFalse(self.install_dir.exists())

    def test_manifest_download_failure(self):
        server = FakeReleaseServer()
        del server.routes[release_download_url('2.0.0', 'checksums.txt')]
        with self.assertRaises(NetworkError) as context:
            self.run_upgrade(server)
        self.assertEqual(context.exception.step, 'download checksums')
        self.assert_temp_files_removed()

    def test_auxiliary_failures_are_warnings(self):
        server = FakeReleaseServer()
        del server.routes[raw_file_url('2.0.0', 'README.md')]
        del server.routes[raw_file_url('2.0.0', 'LICENSE')]

        self.run_upgrade(server)

        self.assertEqual((self.install_dir / 'gwtm').read_bytes(), NEW_BINARY)
        self.assertEqual(len(self.warnings), 2)
        self.assertIn('README.md', self.warnings[0])
        self.assertIn('LICENSE', self.warnings[1])
        self.assertIn('VERSION downloaded', self.info)

    def test_install_failure_is_fatal(self):
        server = FakeReleaseServer()
        with patch('gwtm.upgrade.installer.install_binary', side_effect=FilesystemError('disk full')):
            with self.assertRaises(FilesystemError) as context:
                self.run_upgrade(server)
        self.assertEqual(context.exception.step, 'install binary')
        self.assert_temp_files_removed()

    def test_callbacks_optional(self):
        upgrader = self.make_upgrader(FakeReleaseServer())
        upgrader.run('1.0.0', '2.0.0')
        self.assertTrue((self.install_dir / 'gwtm').exists())


class TestInstallBinary(unittest.TestCase):
    """Test install_binary."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)
        self.src = self.temp_path / 'gwtm-new'
        self.src.write_bytes(NEW_BINARY)
        self.dst = self.temp_path / 'gwtm'
        self.dst.write_bytes(OLD_BINARY)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_rename(self):
        install_binary(self.src, self.dst)
        self.assertEqual(self.dst.read_bytes(), NEW_BINARY)
        self.assertFalse(self.src.exists())

    def test_copy_fallback(self):
        """Test the copy path taken when a rename crosses filesystems."""
        with patch('gwtm.upgrade.installer.os.replace', side_effect=OSError(18, 'Invalid cross-device link')):
            install_binary(self.src, self.dst)

        self.assertEqual(self.dst.read_bytes(), NEW_BINARY)
        self.assertFalse(self.src.exists())
        if os.name != 'nt':
            self.assertEqual(stat.S_IMODE(self.dst.stat().st_mode), 0o755)

    def test_copy_failure_removes_destination(self):
        """Test that a copy failing after writing started removes the partial file."""
        with patch('gwtm.upgrade.installer.os.replace', side_effect=OSError(18, 'Invalid cross-device link')):
            with patch('gwtm.upgrade.installer.shutil.copyfileobj', side_effect=OSError(28, 'No space left')):
                with self.assertRaises(FilesystemError):
                    install_binary(self.src, self.dst)

        self.assertFalse(self.dst.exists())
        self.assertTrue(self.src.exists())

    def test_chmod_failure_removes_destination(self):
        with patch('gwtm.upgrade.installer.os.replace', side_effect=OSError(18, 'Invalid cross-device link')):
            with patch('gwtm.upgrade.installer.os.chmod', side_effect=OSError(1, 'Operation not permitted')):
                with self.assertRaises(FilesystemError):
                    install_binary(self.src, self.dst)

        self.assertFalse(self.dst.exists())
        self.assertTrue(self.src.exists())

    def test_busy_destination_is_kept(self):
        """Test that a destination which cannot be opened survives a failed install."""
        real_open = builtins.open

        def open_busy_target(path, mode='r', *args, **kwargs):
            if 'w' in mode:
                raise OSError(errno.ETXTBSY, 'Text file busy')
            return real_open(path, mode, *args, **kwargs)

        with patch('gwtm.upgrade.installer.os.replace', side_effect=OSError(18, 'Invalid cross-device link')):
            with patch('builtins.open', side_effect=open_busy_target):
                with self.assertRaises(FilesystemError) as context:
                    install_binary(self.src, self.dst)

        self.assertIn('Text file busy', str(context.exception))
        self.assertEqual(self.dst.read_bytes(), OLD_BINARY)
        self.assertTrue(self.src.exists())

    def test_missing_source_keeps_destination(self):
        self.src.unlink()
        with self.assertRaises(FilesystemError):
            install_binary(self.src, self.dst)
        self.assertEqual(self.dst.read_bytes(), OLD_BINARY)


if __name__ == '__main__':
    unittest.main()
