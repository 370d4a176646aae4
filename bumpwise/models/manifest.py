"""
Manifest and property declaration models for bumpwise.

Manifests arrive already parsed: bumpwise never reads manifest syntax. A
manifest records the properties it declares and the manifest it inherits
from, which is all the property resolver needs to walk scope chains.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from bumpwise.constants import NPM_LOCKFILES, YARN_LOCKFILES


@dataclass(frozen=True)
class ManifestFile:
    """A manifest or lockfile belonging to the request.

    Attributes:
        name: Path relative to the repository root (``"core/pom.xml"``).
        content: Raw file content, materialized into scratch workspaces.
        directory: Module directory the file belongs to.
        editable: ``False`` for inherited manifests outside the repository;
            their declarations cannot be rewritten.
        parent: Name of the manifest this one inherits from, if any.
        properties: Property declarations made directly in this manifest.
    """

    name: str
    content: str = ""
    directory: str = "/"
    editable: bool = True
    parent: Optional[str] = None
    properties: Mapping[str, str] = field(default_factory=dict, hash=False)

    @property
    def basename(self) -> str:
        return posixpath.basename(self.name)

    @property
    def is_lockfile(self) -> bool:
        return self.basename in (*NPM_LOCKFILES, *YARN_LOCKFILES)

    def declares(self, property_name: str) -> bool:
        return property_name in self.properties

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ManifestFile":
        return cls(
            name=data["name"],
            content=data.get("content", ""),
            directory=data.get("directory") or "/",
            editable=data.get("editable", True),
            parent=data.get("parent"),
            properties=dict(data.get("properties") or {}),
        )


@dataclass(frozen=True)
class PropertyDeclaration:
    """Where a property is declared and what it is declared as.

    Attributes:
        property_name: The property.
        declaring_file: Name of the manifest that declares it.
        value: Raw declared value.
        editable: Whether the declaring manifest can be rewritten.
    """

    property_name: str
    declaring_file: str
    value: str
    editable: bool = True


@dataclass(frozen=True)
class PropertyEdit:
    """A single rewrite of a property's declared value.

    Many requirements may reference one property; all of them are updated
    through this one edit.
    """

    property_name: str
    property_source: Optional[str]
    new_value: str

    def to_json(self) -> Dict[str, Optional[str]]:
        return {
            "property_name": self.property_name,
            "property_source": self.property_source,
            "new_value": self.new_value,
        }
