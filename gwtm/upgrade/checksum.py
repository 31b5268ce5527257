"""
SHA-256 verification of downloaded artifacts against a checksums.txt manifest.
"""

import hashlib
from pathlib import Path
from typing import Optional, Union

from .errors import ChecksumMismatch, FilesystemError, ManifestEntryNotFound

CHUNK_SIZE = 65536


def file_sha256(path: Union[str, Path]) -> str:
    """Hex SHA-256 digest of a file's full content."""
    digest = hashlib.sha256()
    try:
        with open(path, 'rb') as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b''):
                digest.update(chunk)
    except OSError as e:
        raise FilesystemError(f"failed to read {path}: {e}") from e
    return digest.hexdigest()


def find_manifest_digest(manifest_text: str, artifact_name: str) -> Optional[str]:
    """Digest from the first `<digest>  <filename>` line mentioning artifact_name.

    Lines are matched on substring containment, so `gwtm_Linux_x86_64` also
    matches an entry for `gwtm_Linux_x86_64.tar.gz` listed before it.
    """
    for line in manifest_text.split('\n'):
        if artifact_name in line:
            fields = line.split()
            if fields:
                return fields[0]
    return None


def verify_checksum(
    artifact_path: Union[str, Path],
    manifest_path: Union[str, Path],
    artifact_name: str
) -> None:
    """Raise unless the artifact's digest matches its manifest entry exactly."""
    actual = file_sha256(artifact_path)

    try:
        manifest_text = Path(manifest_path).read_text(encoding='utf-8', errors='replace')
    except OSError as e:
        raise FilesystemError(f"failed to read {manifest_path}: {e}") from e

    expected = find_manifest_digest(manifest_text, artifact_name)
    if expected is None:
        raise ManifestEntryNotFound(f"checksum not found for {artifact_name}")

    if actual != expected:
        raise ChecksumMismatch(expected, actual)
