"""
Self-upgrade: download, verify and install a newer gwtm release.

The sequence is strictly ordered and never retries. Nothing is printed
here; progress goes through the ``on_info`` / ``on_warning`` callbacks.

Known limitation: the temporary download paths are fixed names in the
system temp directory, so two upgrades running at once on the same
machine overwrite each other's files.
"""

import os
import platform
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

import httpx

from gwtm.config import TOOL_NAME, get_binary_path, raw_file_url, release_download_url
from .checksum import verify_checksum
from .errors import AlreadyLatest, FilesystemError, UpgradeError
from .release import download_file
from .semver import parse_version

MessageCallback = Callable[[str], None]

CHECKSUM_MANIFEST = 'checksums.txt'
AUXILIARY_FILES = ('README.md', 'VERSION', 'LICENSE')
TEMP_BINARY_NAME = f"{TOOL_NAME}-new"
TEMP_MANIFEST_NAME = f"{TOOL_NAME}-checksums.txt"
EXECUTABLE_MODE = 0o755

ARCH_ALIASES = {
    'x86_64': 'amd64',
    'amd64': 'amd64',
    'x64': 'amd64',
    'aarch64': 'arm64',
    'arm64': 'arm64',
    'i386': '386',
    'i686': '386',
    'x86': '386',
}


def binary_name(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """Release asset name for a platform, e.g. ``gwtm_Linux_x86_64``."""
    os_name = (system or platform.system()).lower()
    raw_arch = (machine or platform.machine()).lower()
    arch = ARCH_ALIASES.get(raw_arch, raw_arch)
    if arch == 'amd64':
        arch = 'x86_64'

    name = f"{TOOL_NAME}_{os_name[:1].upper()}{os_name[1:]}_{arch}"
    if os_name == 'windows':
        name += '.exe'
    return name


@dataclass(frozen=True)
class UpgradePlan:
    """Everything needed to fetch one release for this platform."""
    current_version: str
    target_version: str
    binary_name: str
    binary_url: str
    checksum_url: str


def _ignore(message: str) -> None:
    pass


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink()
    except OSError:
        pass


@contextmanager
def _step(name: str) -> Iterator[None]:
    """Tag errors raised inside the block with the step that failed."""
    try:
        yield
    except UpgradeError as e:
        if e.step is None:
            e.step = name
        raise
    except OSError as e:
        raise FilesystemError(str(e), step=name) from e


def install_binary(src: Union[str, Path], dst: Union[str, Path]) -> None:
    """Move src onto dst, copying when a rename cannot cross filesystems.

    If dst cannot be opened for writing (a running binary on Linux, missing
    permissions) it is left as it was. Once writing has started a failure
    removes dst, so a previously installed binary is lost in that case.
    """
    src, dst = Path(src), Path(dst)
    try:
        os.replace(src, dst)
        return
    except OSError:
        pass

    try:
        source = open(src, 'rb')
    except OSError as e:
        raise FilesystemError(f"failed to open {src}: {e}") from e

    with source:
        try:
            target = open(dst, 'wb')
        except OSError as e:
            raise FilesystemError(f"failed to open {dst} for writing: {e}") from e

        try:
            with target:
                shutil.copyfileobj(source, target)
            # a fresh copy does not carry the executable bit
            os.chmod(dst, EXECUTABLE_MODE)
        except OSError as e:
            _remove_quietly(dst)
            raise FilesystemError(f"failed to copy binary to {dst}: {e}") from e

    _remove_quietly(src)


class Upgrader:
    """Runs the upgrade sequence for one install location."""

    def __init__(
        self,
        install_dir: Union[str, Path],
        binary_path: Optional[Union[str, Path]] = None,
        client: Optional[httpx.Client] = None,
        temp_dir: Optional[Union[str, Path]] = None,
        system: Optional[str] = None,
        machine: Optional[str] = None
    ):
        self.install_dir = Path(install_dir)
        self.binary_path = Path(binary_path) if binary_path else get_binary_path(self.install_dir, system)
        self.client = client
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self.system = system
        self.machine = machine

    def plan(self, current_version: str, latest_version: str) -> UpgradePlan:
        name = binary_name(self.system, self.machine)
        return UpgradePlan(
            current_version=current_version,
            target_version=latest_version,
            binary_name=name,
            binary_url=release_download_url(latest_version, name),
            checksum_url=release_download_url(latest_version, CHECKSUM_MANIFEST),
        )

    def run(
        self,
        current_version: str,
        latest_version: str,
        on_info: Optional[MessageCallback] = None,
        on_warning: Optional[MessageCallback] = None
    ) -> UpgradePlan:
        """Upgrade from current_version to latest_version.

        Raises AlreadyLatest when latest_version is not strictly newer, and
        the typed UpgradeError of the failing step otherwise. The installed
        binary is only touched by the final install step.
        """
        on_info = on_info or _ignore
        on_warning = on_warning or _ignore

        with _step('parse current version'):
            current = parse_version(current_version)
        with _step('parse latest version'):
            latest = parse_version(latest_version)

        if not latest.greater_than(current):
            raise AlreadyLatest(current_version)

        plan = self.plan(current_version, latest_version)
        temp_binary = self.temp_dir / TEMP_BINARY_NAME
        temp_manifest = self.temp_dir / TEMP_MANIFEST_NAME

        if self.client is not None:
            self._install(plan, temp_binary, temp_manifest, self.client, on_info, on_warning)
        else:
            with httpx.Client() as client:
                self._install(plan, temp_binary, temp_manifest, client, on_info, on_warning)
        return plan

    def _install(
        self,
        plan: UpgradePlan,
        temp_binary: Path,
        temp_manifest: Path,
        client: httpx.Client,
        on_info: MessageCallback,
        on_warning: MessageCallback
    ) -> None:
        try:
            with _step('download binary'):
                download_file(plan.binary_url, temp_binary, client=client)
            on_info("Binary downloaded")

            with _step('download checksums'):
                download_file(plan.checksum_url, temp_manifest, client=client)

            with _step('verify checksum'):
                verify_checksum(temp_binary, temp_manifest, plan.binary_name)
            on_info("Checksum verified")

            with _step('create install directory'):
                self.install_dir.mkdir(parents=True, exist_ok=True)

            self._download_auxiliary_files(plan.target_version, client, on_info, on_warning)

            with _step('set permissions'):
                os.chmod(temp_binary, EXECUTABLE_MODE)

            with _step('install binary'):
                install_binary(temp_binary, self.binary_path)
            on_info(f"Installed {self.binary_path}")
        finally:
            _remove_quietly(temp_binary)
            _remove_quietly(temp_manifest)

    def _download_auxiliary_files(
        self,
        version: str,
        client: httpx.Client,
        on_info: MessageCallback,
        on_warning: MessageCallback
    ) -> None:
        for filename in AUXILIARY_FILES:
            try:
                download_file(raw_file_url(version, filename), self.install_dir / filename, client=client)
            except UpgradeError as e:
                on_warning(f"failed to download {filename}: {e}")
            else:
                on_info(f"{filename} downloaded")


def upgrade_to_latest(
    current_version: str,
    latest_version: str,
    install_dir: Union[str, Path],
    on_info: Optional[MessageCallback] = None,
    on_warning: Optional[MessageCallback] = None,
    client: Optional[httpx.Client] = None
) -> UpgradePlan:
    """Convenience wrapper running an Upgrader for install_dir."""
    upgrader = Upgrader(install_dir, client=client)
    return upgrader.run(current_version, latest_version, on_info, on_warning)
