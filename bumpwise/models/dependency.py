"""
Dependency and requirement data models for bumpwise.

A :class:`Dependency` is a read-only snapshot produced by the structural
parser for one request. Each :class:`Requirement` is one manifest
declaration; when it is bound to a named build property its raw
constraint is not authoritative, the property's declaration is.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from packaging.version import Version

from bumpwise.utils.version_utils import parse_version


@dataclass(frozen=True)
class PropertyBinding:
    """Link between a requirement and the property supplying its version.

    Attributes:
        property_name: Name of the symbolic property (e.g. ``"jackson.version"``).
        property_source: Identity of the manifest declaring the property.
            Same-named properties declared in unrelated manifests are
            independent; ``None`` means the parser did not say, which is a
            contract violation surfaced by the property analyzer.
    """

    property_name: str
    property_source: Optional[str] = None

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        return (self.property_name, self.property_source)


@dataclass(frozen=True)
class Requirement:
    """One version declaration for a dependency inside a manifest.

    Attributes:
        file: Name of the manifest holding the declaration.
        requirement: Raw constraint string, or ``None`` when the manifest
            declares no version.
        groups: Dependency groups/scopes (``"test"``, ``"runtime"`` ...).
        source_url: Registry the version is fetched from, if recorded.
        binding: Property binding, when the version comes from a property.
    """

    file: str
    requirement: Optional[str] = None
    groups: Tuple[str, ...] = ()
    source_url: Optional[str] = None
    binding: Optional[PropertyBinding] = None

    @property
    def property_name(self) -> Optional[str]:
        return self.binding.property_name if self.binding else None

    @property
    def property_source(self) -> Optional[str]:
        return self.binding.property_source if self.binding else None

    @property
    def is_property_bound(self) -> bool:
        return self.binding is not None

    def with_changes(self, **changes: Any) -> "Requirement":
        """Return a copy with *changes* applied; the original is untouched."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Requirement":
        """Build a requirement from its JSON form.

        ``metadata.property_name`` / ``metadata.property_source`` carry the
        property binding, matching what manifest parsers emit.
        """
        metadata = data.get("metadata") or {}
        binding = None
        if metadata.get("property_name"):
            binding = PropertyBinding(
                property_name=metadata["property_name"],
                property_source=metadata.get("property_source"),
            )
        return cls(
            file=data["file"],
            requirement=data.get("requirement"),
            groups=tuple(data.get("groups") or ()),
            source_url=data.get("source_url"),
            binding=binding,
        )

    def to_json(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "file": self.file,
            "requirement": self.requirement,
            "groups": list(self.groups),
            "source_url": self.source_url,
        }
        if self.binding is not None:
            entry["metadata"] = {
                "property_name": self.binding.property_name,
                "property_source": self.binding.property_source,
            }
        return entry


@dataclass(frozen=True)
class Dependency:
    """A dependency occurrence within one resolution scope.

    ``(name, directory)`` identifies the occurrence: a multi-module project
    may declare the same named dependency independently in several modules.

    Attributes:
        name: Dependency name, unique within a scope.
        version: Current version string; may be ``None`` or unparseable.
        requirements: Declarations of this dependency, in manifest order.
        directory: Module directory the occurrence belongs to.
        previous_version: Version before an update (set on updated copies).
        previous_requirements: Requirements before an update.
    """

    name: str
    version: Optional[str] = None
    requirements: Tuple[Requirement, ...] = ()
    directory: str = "/"
    previous_version: Optional[str] = None
    previous_requirements: Optional[Tuple[Requirement, ...]] = field(
        default=None, compare=False
    )

    @property
    def key(self) -> Tuple[str, str]:
        return (self.name, self.directory)

    @property
    def parsed_version(self) -> Optional[Version]:
        return parse_version(self.version)

    @property
    def has_determinate_version(self) -> bool:
        """False when the current version is absent or not a version at all."""
        return self.parsed_version is not None

    def property_requirements(self) -> List[Requirement]:
        """Requirements whose version comes from a property."""
        return [req for req in self.requirements if req.is_property_bound]

    def direct_requirements(self) -> List[Requirement]:
        """Requirements whose constraint string is authoritative."""
        return [req for req in self.requirements if not req.is_property_bound]

    def with_changes(self, **changes: Any) -> "Dependency":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Dependency":
        return cls(
            name=data["name"],
            version=data.get("version"),
            requirements=tuple(
                Requirement.from_dict(req) for req in data.get("requirements") or ()
            ),
            directory=data.get("directory") or "/",
        )

    def to_json(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "directory": self.directory,
            "requirements": [req.to_json() for req in self.requirements],
        }
        if self.previous_version is not None:
            entry["previous_version"] = self.previous_version
        return entry

    def __str__(self) -> str:
        return f"{self.name}@{self.version or '?'} ({self.directory})"
