"""Version comparison for Installation Manager version strings.

IBM packages use versions such as ``8.5.5000.20130514_1044``: dotted
numeric parts followed by a build stamp and sometimes an alphabetic
qualifier. Versions are split into alphanumeric segments and compared
segment by segment.
"""

import re
from typing import Tuple

_SEGMENT_PATTERN = re.compile(r"\d+|[A-Za-z]+")


def version_segments(version: str) -> list[str]:
    """Split a version into its alphanumeric segments.

    Any non-alphanumeric character is a delimiter, and a switch between
    digits and letters starts a new segment.

    Examples:
        >>> version_segments("8.5.5000.20130514_1044")
        ['8', '5', '5000', '20130514', '1044']
        >>> version_segments("1.0.0-beta2")
        ['1', '0', '0', 'beta', '2']
    """
    return _SEGMENT_PATTERN.findall(version or "")


def version_key(version: str) -> Tuple[Tuple[int, int, str], ...]:
    """Return a sort key giving the total order used by compare_versions.

    Numeric segments sort before alphabetic ones at the same position,
    matching a plain lexical comparison of digits against letters.
    """
    key = []
    for segment in version_segments(version):
        if segment.isdigit():
            key.append((0, int(segment), ""))
        else:
            key.append((1, 0, segment.upper()))
    return tuple(key)


def compare_versions(version1: str, version2: str) -> int:
    """Compare two version strings. Returns -1, 0, or 1.

    When every segment the two versions share is equal, the version with
    fewer segments is the lesser one, so ``8.5`` < ``8.5.0`` and
    ``8.5.5000`` < ``8.5.5000.20130514_1044``.
    """
    v1 = version_key(version1)
    v2 = version_key(version2)

    if v1 < v2:
        return -1
    elif v1 > v2:
        return 1
    else:
        return 0


def is_version_satisfied(installed: str, minimum: str) -> bool:
    """Return True if ``installed`` is equal to or newer than ``minimum``."""
    return compare_versions(installed, minimum) >= 0


__all__ = [
    "version_segments",
    "version_key",
    "compare_versions",
    "is_version_satisfied",
]
