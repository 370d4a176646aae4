"""
Version candidate and security advisory models for bumpwise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from packaging.version import Version

from bumpwise.utils.version_utils import Constraint, VersionLike, matches_any, parse_version


@dataclass(frozen=True)
class VersionCandidate:
    """A publicly available version and where it comes from.

    Attributes:
        version: Version string as listed by the registry.
        source_url: Registry URL the version is served from.
        clears_advisories: Whether the version is outside every known
            vulnerable range; ``None`` until evaluated.
    """

    version: str
    source_url: Optional[str] = None
    clears_advisories: Optional[bool] = None

    @property
    def parsed(self) -> Optional[Version]:
        return parse_version(self.version)

    def to_json(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "source_url": self.source_url,
            "clears_advisories": self.clears_advisories,
        }


@dataclass(frozen=True)
class SecurityAdvisory:
    """A known vulnerability affecting a range of a dependency's versions.

    Ranges use the constraint grammar of
    :class:`~bumpwise.utils.version_utils.Constraint`.

    Attributes:
        dependency_name: Dependency the advisory applies to.
        identifier: Advisory id (``GHSA-…``, ``CVE-…``), informational.
        vulnerable_versions: Ranges known to be vulnerable.
        safe_versions: Ranges known to be patched or unaffected.

    Raises:
        InvalidConstraint: A range matches neither constraint grammar.
    """

    dependency_name: str
    identifier: Optional[str] = None
    vulnerable_versions: Tuple[str, ...] = ()
    safe_versions: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Every range must parse at construction
        self._vulnerable_constraints()
        self._safe_constraints()

    def _vulnerable_constraints(self) -> List[Constraint]:
        return [Constraint(raw, soft_bare=False) for raw in self.vulnerable_versions]

    def _safe_constraints(self) -> List[Constraint]:
        return [Constraint(raw, soft_bare=False) for raw in self.safe_versions]

    def is_vulnerable(self, version: VersionLike) -> bool:
        """Return True if *version* is affected by this advisory.

        A version inside a safe range is never vulnerable. Without explicit
        vulnerable ranges, anything outside the safe ranges is vulnerable.
        Unparseable versions are not judged vulnerable.
        """
        if parse_version(version) is None:
            return False

        if matches_any(version, self._safe_constraints()):
            return False

        if self.vulnerable_versions:
            return matches_any(version, self._vulnerable_constraints())

        return bool(self.safe_versions)

    def is_fixed_by(self, version: VersionLike) -> bool:
        return parse_version(version) is not None and not self.is_vulnerable(version)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SecurityAdvisory":
        safe = tuple(data.get("patched_versions") or ()) + tuple(
            data.get("unaffected_versions") or ()
        )
        return cls(
            dependency_name=data["dependency_name"],
            identifier=data.get("identifier"),
            vulnerable_versions=tuple(data.get("vulnerable_versions") or ()),
            safe_versions=safe,
        )
