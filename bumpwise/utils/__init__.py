"""
Utility helpers for bumpwise.

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem and scratch workspace helpers
- Async HTTP client
- Native helper subprocess runner
- Version and constraint helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

from bumpwise.utils.logger import get_logger, setup_logging
from bumpwise.utils.version_utils import (
    Constraint,
    InvalidConstraint,
    get_update_type,
    is_version,
    parse_version,
)
from bumpwise.utils.filesystem import materialize_files, safe_read_file, scratch_workspace
from bumpwise.utils.subprocess import run_helper_subprocess
from bumpwise.utils.http import HTTPClient
from bumpwise.utils.console import (
    colorize_update_type,
    get_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # Versions
    "Constraint",
    "InvalidConstraint",
    "get_update_type",
    "is_version",
    "parse_version",
    # Filesystem
    "materialize_files",
    "safe_read_file",
    "scratch_workspace",
    # Subprocess
    "run_helper_subprocess",
    # HTTP
    "HTTPClient",
    # Console
    "colorize_update_type",
    "get_console",
    "print_error",
    "print_success",
    "print_table",
    "print_warning",
    "reconfigure_console",
]
