"""
Semantic version parsing and precedence (semver 2.0.0).
"""

import re
from dataclasses import dataclass
from typing import Tuple

from .errors import InvalidVersion

SEMVER_PATTERN = re.compile(
    r'v?([0-9]+)\.([0-9]+)\.([0-9]+)'
    r'(?:-([0-9A-Za-z\-.]+))?'
    r'(?:\+([0-9A-Za-z\-.]+))?',
    re.ASCII
)


@dataclass(frozen=True, eq=False)
class SemanticVersion:
    """A parsed semantic version.

    Equality and ordering follow semver precedence: the optional leading
    ``v`` and the build metadata never take part in comparisons.
    """
    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()
    build: str = ''
    original: str = ''

    def greater_than(self, other: 'SemanticVersion') -> bool:
        """Return True if this version has strictly higher precedence."""
        return compare_versions(self, other) > 0

    def _key(self) -> tuple:
        prerelease = tuple(int(part) if part.isdigit() else part for part in self.prerelease)
        return self.major, self.minor, self.patch, prerelease

    def __eq__(self, other):
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare_versions(self, other) == 0

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare_versions(self, other) < 0

    def __le__(self, other):
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare_versions(self, other) <= 0

    def __gt__(self, other):
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare_versions(self, other) > 0

    def __ge__(self, other):
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return compare_versions(self, other) >= 0

    def __str__(self) -> str:
        return self.original or self.core()

    def core(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += '-' + '.'.join(self.prerelease)
        if self.build:
            text += '+' + self.build
        return text


def parse_version(text: str) -> SemanticVersion:
    """Parse MAJOR.MINOR.PATCH[-prerelease][+build], with an optional leading v."""
    match = SEMVER_PATTERN.fullmatch(text)
    if not match:
        raise InvalidVersion(f"invalid semantic version: {text}")

    major, minor, patch, prerelease, build = match.groups()
    return SemanticVersion(
        major=int(major),
        minor=int(minor),
        patch=int(patch),
        prerelease=tuple(prerelease.split('.')) if prerelease else (),
        build=build or '',
        original=text,
    )


def compare_versions(a: SemanticVersion, b: SemanticVersion) -> int:
    """Return 1, 0 or -1 as a has higher, equal or lower precedence than b."""
    for left, right in ((a.major, b.major), (a.minor, b.minor), (a.patch, b.patch)):
        if left != right:
            return 1 if left > right else -1

    # A release outranks any prerelease of the same core version
    if not a.prerelease and not b.prerelease:
        return 0
    if not a.prerelease:
        return 1
    if not b.prerelease:
        return -1

    return _compare_prerelease(a.prerelease, b.prerelease)


def _compare_prerelease(a: Tuple[str, ...], b: Tuple[str, ...]) -> int:
    for index in range(max(len(a), len(b))):
        if index >= len(a):
            return -1
        if index >= len(b):
            return 1

        left, right = a[index], b[index]
        left_numeric, right_numeric = left.isdigit(), right.isdigit()

        if left_numeric and right_numeric:
            if int(left) != int(right):
                return 1 if int(left) > int(right) else -1
            continue

        # numeric identifiers have lower precedence than alphanumeric ones
        if left_numeric:
            return -1
        if right_numeric:
            return 1

        if left != right:
            return 1 if left > right else -1

    return 0


def version_gt(a: str, b: str) -> bool:
    """Return True if version text a is strictly greater than version text b."""
    return parse_version(a).greater_than(parse_version(b))
