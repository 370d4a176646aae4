"""
Executable module for bumpwise.

Running ``python -m bumpwise`` is equivalent to running ``bumpwise``.
"""

from __future__ import annotations

import sys


def main() -> int:
    """Entrypoint when executing ``python -m bumpwise``.

    Returns:
        Exit code returned by the CLI.
    """
    # Import lazily so CLI-only dependencies load on demand
    from bumpwise.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
