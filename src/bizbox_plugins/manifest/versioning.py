"""Dependency version matching.

Manifests pin dependencies to a single MAJOR.MINOR.PATCH string. How that
pin is compared to the version actually available is a registry setting:

- EXACT: literal string equality
- COMPATIBLE: caret semantics, same major and actual >= required
  (for 0.x, the minor must match as well)
"""

from bizbox_plugins.types import VersionMatching

from .validator import is_valid_version


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse a strict MAJOR.MINOR.PATCH string.

    Args:
        version: Version string (e.g., "1.4.2")

    Returns:
        (major, minor, patch)

    Raises:
        ValueError: If version is not strict MAJOR.MINOR.PATCH
    """
    if not is_valid_version(version):
        raise ValueError(f"Invalid version: {version!r}. Expected MAJOR.MINOR.PATCH")
    major, minor, patch = (int(part) for part in version.split("."))
    return major, minor, patch


def compare_versions(v1: str, v2: str) -> int:
    """Compare two version strings.

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2
    """
    p1, p2 = parse_version(v1), parse_version(v2)
    if p1 < p2:
        return -1
    if p1 > p2:
        return 1
    return 0


def is_compatible_release(actual: str, required: str) -> bool:
    """Check caret compatibility: ^required accepts actual.

    ^1.2.3 accepts >=1.2.3, <2.0.0
    ^0.2.3 accepts >=0.2.3, <0.3.0
    """
    if not (is_valid_version(actual) and is_valid_version(required)):
        return False

    a_major, a_minor, _ = parse_version(actual)
    r_major, r_minor, _ = parse_version(required)

    if compare_versions(actual, required) < 0:
        return False
    if r_major == 0:
        return a_major == 0 and a_minor == r_minor
    return a_major == r_major


def version_satisfies(
    actual: str,
    required: str,
    matching: VersionMatching = VersionMatching.EXACT,
) -> bool:
    """Check whether an available version satisfies a required pin."""
    if matching == VersionMatching.EXACT:
        return actual == required
    return is_compatible_release(actual, required)
