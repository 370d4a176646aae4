"""
Centralized constants for bumpwise.

Immutable values used across bumpwise: registry endpoints, lockfile names,
native helper function names, resolver limits, and logging formats.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "bumpwise/{version}"

# ---------------------------------------------------------------------------
# Registry endpoints
# ---------------------------------------------------------------------------

#: Default JSON version listing (PyPI-compatible ``releases`` document).
DEFAULT_REGISTRY_URL: Final[str] = "https://pypi.org/pypi/{package}/json"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

# ---------------------------------------------------------------------------
# Lockfile graph helpers
# ---------------------------------------------------------------------------

#: Lockfiles handled by the npm graph helper.
NPM_LOCKFILES: Final[Sequence[str]] = ("package-lock.json", "npm-shrinkwrap.json")

#: Lockfiles handled by the yarn graph helper.
YARN_LOCKFILES: Final[Sequence[str]] = ("yarn.lock",)

#: Helper function asked for conflicts when an npm lockfile is present.
NPM_CONFLICTS_FUNCTION: Final[str] = "npm:findConflictingDependencies"

#: Helper function asked for conflicts when only a yarn lockfile is present.
YARN_CONFLICTS_FUNCTION: Final[str] = "yarn:findConflictingDependencies"

#: Default timeout (seconds) for one native helper invocation.
DEFAULT_RESOLVER_TIMEOUT: Final[float] = 120.0

#: Default native helper command (resolved on ``PATH``).
DEFAULT_HELPER_COMMAND: Final[Sequence[str]] = ("bumpwise-native-helper",)

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Run the transitive conflict check before issuing a verdict.
DEFAULT_CHECK_CONFLICTS: Final[bool] = True

#: Consider pre-release versions even when the current version is stable.
DEFAULT_ALLOW_PRERELEASES: Final[bool] = False

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading request documents.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
