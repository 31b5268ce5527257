"""
Version checks and self-upgrade for gwtm.
"""

from .errors import (
    UpgradeError,
    InvalidVersion,
    NetworkError,
    NotFound,
    ParseError,
    ManifestEntryNotFound,
    ChecksumMismatch,
    FilesystemError,
    AlreadyLatest
)

from .semver import (
    SemanticVersion,
    parse_version,
    compare_versions,
    version_gt
)

from .release import (
    fetch_latest_version,
    download_file
)

from .checksum import (
    file_sha256,
    find_manifest_digest,
    verify_checksum
)

from .installer import (
    UpgradePlan,
    Upgrader,
    binary_name,
    install_binary,
    upgrade_to_latest
)

__all__ = [
    # errors
    'UpgradeError',
    'InvalidVersion',
    'NetworkError',
    'NotFound',
    'ParseError',
    'ManifestEntryNotFound',
    'ChecksumMismatch',
    'FilesystemError',
    'AlreadyLatest',

    # versions
    'SemanticVersion',
    'parse_version',
    'compare_versions',
    'version_gt',

    # release index and downloads
    'fetch_latest_version',
    'download_file',

    # checksums
    'file_sha256',
    'find_manifest_digest',
    'verify_checksum',

    # install
    'UpgradePlan',
    'Upgrader',
    'binary_name',
    'install_binary',
    'upgrade_to_latest'
]
