"""
Runtime configuration for gwtm: build information, install location and
release coordinates.
"""

import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from . import __version__

TOOL_NAME = 'gwtm'

REPO_OWNER = 'lucasmodrich'
REPO_NAME = 'git-worktree-manager'

LATEST_RELEASE_URL = f"https://api.github.com/repos/{REPO_OWNER}/{REPO_NAME}/releases/latest"
RELEASE_DOWNLOAD_BASE = f"https://github.com/{REPO_OWNER}/{REPO_NAME}/releases/download"
RAW_TAG_BASE = f"https://raw.githubusercontent.com/{REPO_OWNER}/{REPO_NAME}/refs/tags"

HOME_ENV_VAR = 'GIT_WORKTREE_MANAGER_HOME'
INSTALL_DIR_NAME = '.git-worktree-manager'


def release_download_url(version: str, filename: str) -> str:
    """URL of a file attached to the release tagged v{version}."""
    return f"{RELEASE_DOWNLOAD_BASE}/v{version}/{filename}"


def raw_file_url(version: str, filename: str) -> str:
    """URL of a repository file as of tag v{version}."""
    return f"{RAW_TAG_BASE}/v{version}/{filename}"


def get_install_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Installation directory, honouring GIT_WORKTREE_MANAGER_HOME."""
    env = os.environ if environ is None else environ

    custom_dir = env.get(HOME_ENV_VAR)
    if custom_dir:
        return Path(custom_dir)

    # USERPROFILE covers Windows shells where HOME is unset
    home = env.get('HOME') or env.get('USERPROFILE')
    base = Path(home) if home else Path.home()
    return base / INSTALL_DIR_NAME


def get_binary_path(install_dir: Path, system: Optional[str] = None) -> Path:
    """Full path of the gwtm binary inside the install directory."""
    system = (system or platform.system()).lower()
    name = f"{TOOL_NAME}.exe" if system == 'windows' else TOOL_NAME
    return Path(install_dir) / name


@dataclass(frozen=True)
class BuildInfo:
    """Version, commit hash and build date of the running program."""
    version: str
    commit: str = 'none'
    date: str = 'unknown'

    def display(self) -> str:
        if self.commit and self.commit != 'none':
            return f"{self.version} ({self.commit}, {self.date})"
        return self.version


@dataclass(frozen=True)
class Settings:
    """Immutable settings built once at program entry and passed to commands."""
    build: BuildInfo
    install_dir: Path
    dry_run: bool = False
    verbose: bool = False

    @property
    def binary_path(self) -> Path:
        return get_binary_path(self.install_dir)

    @classmethod
    def from_env(
        cls,
        dry_run: bool = False,
        verbose: bool = False,
        environ: Optional[Mapping[str, str]] = None
    ) -> 'Settings':
        env = os.environ if environ is None else environ
        build = BuildInfo(
            version=__version__,
            commit=env.get('GWTM_BUILD_COMMIT', 'none'),
            date=env.get('GWTM_BUILD_DATE', 'unknown'),
        )
        return cls(
            build=build,
            install_dir=get_install_dir(env),
            dry_run=dry_run,
            verbose=verbose,
        )
