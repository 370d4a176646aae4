"""
Unified data model exports for bumpwise.

Example:
    >>> from bumpwise.models import Dependency, Requirement, ConflictRecord
"""

from __future__ import annotations

from bumpwise.models.dependency import Dependency, PropertyBinding, Requirement
from bumpwise.models.manifest import ManifestFile, PropertyDeclaration, PropertyEdit
from bumpwise.models.candidate import SecurityAdvisory, VersionCandidate
from bumpwise.models.conflict import ConflictCheckStatus, ConflictRecord, ConflictReport

__all__ = [
    "Dependency",
    "PropertyBinding",
    "Requirement",
    "ManifestFile",
    "PropertyDeclaration",
    "PropertyEdit",
    "SecurityAdvisory",
    "VersionCandidate",
    "ConflictCheckStatus",
    "ConflictRecord",
    "ConflictReport",
]
