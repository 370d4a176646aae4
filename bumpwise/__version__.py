"""
bumpwise version information.

Single source of truth for the package version. Follows Semantic
Versioning: https://semver.org/
"""

from __future__ import annotations

import re

__version__ = "0.3.0"


def _parse_version(version: str):
    """
    Break a ``MAJOR.MINOR.PATCH[.PRE]`` version into components.

    Returns:
        dict: ``{"major", "minor", "patch", "prerelease", "is_dev"}``
    """

    pattern = r"^(\d+)\.(\d+)\.(\d+)(?:[.-]([a-zA-Z0-9]+))?$"
    match = re.match(pattern, version)

    if not match:
        raise ValueError(f"Invalid version string: {version}")

    major, minor, patch, pre = match.groups()

    return {
        "major": int(major),
        "minor": int(minor),
        "patch": int(patch),
        "prerelease": pre,
        "is_dev": pre is not None and pre.startswith("dev"),
    }


VERSION_INFO = _parse_version(__version__)

VERSION_STRING = f"bumpwise {__version__}"
