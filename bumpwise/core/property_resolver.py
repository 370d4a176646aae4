"""Property declaration lookup for bumpwise.

Hierarchical build systems let a module inherit properties from a parent
module, which may itself inherit from an ancestor outside the repository.
The nearest declaration wins. :class:`PropertyResolver` models the
manifests as an arena (name → manifest, each naming its parent) and walks
the chain from the manifest that uses a property up to the first manifest
that declares it.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from bumpwise.models.manifest import ManifestFile, PropertyDeclaration
from bumpwise.utils.logger import get_logger

logger = get_logger("property_resolver")

__all__ = ["PropertyResolver"]


class PropertyResolver:
    """Find where a property used by a manifest is actually declared.

    Lookups are pure and memoized for the lifetime of the resolver, which
    is scoped to one request.

    Args:
        manifests: Every manifest of the request, editable or external.

    Example::

        >>> resolver = PropertyResolver(manifests)
        >>> decl = resolver.resolve("jackson.version", "core/pom.xml")
        >>> decl.declaring_file, decl.editable
        ('pom.xml', True)
    """

    def __init__(self, manifests: Sequence[ManifestFile]) -> None:
        self._arena: Dict[str, ManifestFile] = {m.name: m for m in manifests}
        self._memo: Dict[Tuple[str, str], Optional[PropertyDeclaration]] = {}

    def scope_chain(self, callsite_file: str) -> List[ManifestFile]:
        """Return *callsite_file* followed by its ancestors, nearest first.

        The walk stops at a manifest without a parent, at a parent that is
        not part of the supplied set, or when the chain cycles back on
        itself.
        """
        chain: List[ManifestFile] = []
        visited = set()
        current = self._arena.get(callsite_file)

        while current is not None:
            if current.name in visited:
                logger.warning(
                    "Inheritance cycle detected at %s while walking from %s",
                    current.name,
                    callsite_file,
                )
                break
            visited.add(current.name)
            chain.append(current)

            if current.parent is None:
                break
            parent = self._arena.get(current.parent)
            if parent is None:
                logger.debug(
                    "Parent %s of %s is not in the manifest set",
                    current.parent,
                    current.name,
                )
            current = parent

        return chain

    def resolve(
        self,
        property_name: str,
        callsite_file: str,
    ) -> Optional[PropertyDeclaration]:
        """Locate the nearest declaration of *property_name*.

        Args:
            property_name: Property referenced by a requirement.
            callsite_file: Manifest holding that requirement.

        Returns:
            The declaration, or ``None`` when no reachable scope declares
            the property. Callers must treat ``None`` as "cannot update".
        """
        key = (property_name, callsite_file)
        if key not in self._memo:
            self._memo[key] = self._lookup(property_name, callsite_file)
        return self._memo[key]

    def _lookup(
        self,
        property_name: str,
        callsite_file: str,
    ) -> Optional[PropertyDeclaration]:
        for manifest in self.scope_chain(callsite_file):
            if manifest.declares(property_name):
                return PropertyDeclaration(
                    property_name=property_name,
                    declaring_file=manifest.name,
                    value=manifest.properties[property_name],
                    editable=manifest.editable,
                )

        logger.info("Property %s used in %s is not declared", property_name, callsite_file)
        return None

    def is_editable(self, property_name: str, callsite_file: str) -> bool:
        """True if the nearest declaration exists and can be rewritten."""
        declaration = self.resolve(property_name, callsite_file)
        return declaration is not None and declaration.editable
