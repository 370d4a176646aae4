"""
bumpwise — safe single-dependency update decisions

bumpwise decides, for one outdated dependency inside a repository, whether
and how it can be bumped to a new version. It understands:

    • Version strings shared through named build properties
    • Joint ("full unlock") updates of every dependency sharing a property
    • Latest and lowest-security-fix target selection
    • Transitive conflicts reported by lockfile graph helpers

The decision core lives in :mod:`bumpwise.core`; the data model in
:mod:`bumpwise.models`.
"""

from __future__ import annotations

from bumpwise.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "bumpwise Contributors"
__license__ = "Apache-2.0"
__description__ = "Decide whether a single dependency can be safely bumped."

__all__ = [
    "__version__",
]
