"""Dotted version comparison used by the library check.

Versions are compared component by component as integers. Any component that
is not plain digits makes the pair incomparable and yields NaN, which callers
must not read as "older" or "newer".
"""

import logging
import math
import re
from typing import Union

logger = logging.getLogger(__name__)

_VALID_PART = re.compile(r"^\d+$")

# 1.17, 1.17b2, 1.17-beta2 (but not 1.17.0 or 1.17.2)
_MAJOR_MINOR = re.compile(r"^(\d+\.\d+)(.*)$", re.DOTALL)
_HAS_PATCH = re.compile(r"^\.\d+")

# Leading dotted-numeric part of a version, e.g. "1.17.0" in "1.17.0b2"
_NUMERIC_PREFIX = re.compile(r"^\d+(?:\.\d+)*")


def compare_versions(version1: str, version2: str) -> Union[int, float]:
    """Compare two dotted numeric versions.

    Args:
        version1: First version, e.g. "1.6.4"
        version2: Second version

    Returns:
        -1, 0 or 1, or NaN when either version has a non-numeric part.
        "1.2.1" > "1.2", and "1.2" < "1.2.0" (the shorter first argument
        loses a tie).
    """
    if not isinstance(version1, str) or not isinstance(version2, str):
        return math.nan

    v1 = version1.split(".")
    v2 = version2.split(".")

    if not all(_VALID_PART.match(part) for part in v1) or \
            not all(_VALID_PART.match(part) for part in v2):
        return math.nan

    for i, part in enumerate(v1):
        if len(v2) == i:
            return 1

        a, b = int(part), int(v2[i])
        if a == b:
            continue
        return 1 if a > b else -1

    if len(v1) != len(v2):
        return -1

    return 0


def normalize_patch(version: str) -> str:
    """Add an implied ".0" patch component to a major.minor version.

    "1.17" -> "1.17.0", "1.17b2" -> "1.17.0b2"; "1.17.2" is unchanged.
    """
    parts = _MAJOR_MINOR.match(version)
    if parts and not _HAS_PATCH.match(parts.group(2)):
        return parts.group(1) + ".0" + parts.group(2)
    return version


def comparable_version(version: str) -> str:
    """Strip a pre-release or build suffix so the version compares numerically.

    "1.17.0b2" -> "1.17.0", "1.11.3-pre" -> "1.11.3". Versions without a
    numeric prefix are returned unchanged (and stay incomparable).
    """
    match = _NUMERIC_PREFIX.match(version)
    if not match:
        return version
    return match.group(0)


def is_older(version: str, minimum: str) -> bool:
    """True when version is strictly older than minimum.

    Incomparable versions are never reported as older.
    """
    result = compare_versions(comparable_version(version), minimum)
    if isinstance(result, float) and math.isnan(result):
        logger.debug(f"Cannot compare version {version!r} with {minimum!r}")
        return False
    return result == -1
