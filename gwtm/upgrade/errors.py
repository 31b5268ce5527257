"""
Errors raised by the self-upgrade pipeline.
"""

from typing import Optional

from gwtm.core import GwtmError


class UpgradeError(GwtmError):
    """Base exception for version checks and upgrades.

    ``step`` names the upgrade step that failed, when the error was raised
    while running the upgrade sequence.
    """

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self) -> str:
        if self.step:
            return f"failed to {self.step}: {self.message}"
        return self.message


class InvalidVersion(UpgradeError):
    """Text is not a semantic version."""
    pass


class NetworkError(UpgradeError):
    """Transport failure or unexpected HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None, step: Optional[str] = None):
        super().__init__(message, step)
        self.status_code = status_code


class NotFound(UpgradeError):
    """The release index reports no published release."""
    pass


class ParseError(UpgradeError):
    """A response body could not be decoded into the expected shape."""
    pass


class ManifestEntryNotFound(UpgradeError):
    """The checksum manifest has no line for the artifact."""
    pass


class ChecksumMismatch(UpgradeError):
    """The artifact digest differs from the manifest entry."""

    def __init__(self, expected: str, actual: str, step: Optional[str] = None):
        super().__init__(f"checksum mismatch: expected {expected}, got {actual}", step)
        self.expected = expected
        self.actual = actual


class FilesystemError(UpgradeError):
    """Local create, write, chmod or rename failure."""
    pass


class AlreadyLatest(UpgradeError):
    """The installed version is not older than the latest release."""

    def __init__(self, version: str):
        super().__init__(f"already on latest version {version}")
        self.version = version
