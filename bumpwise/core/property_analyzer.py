"""Detection of properties shared between different dependencies.

When two different dependencies take their version from the same property
declared in the same place, bumping one silently bumps the other. Such a
dependency cannot be updated on its own: every dependency bound to the
property has to move together (a *full unlock*).
"""

from __future__ import annotations

from typing import List, Sequence, Set, Tuple

from bumpwise.exceptions import MalformedRequirementError
from bumpwise.models.dependency import Dependency
from bumpwise.utils.logger import get_logger

logger = get_logger("property_analyzer")

__all__ = ["PropertyAnalyzer", "binding_keys"]

PropertyKey = Tuple[str, str]


def binding_keys(dependency: Dependency) -> Set[PropertyKey]:
    """Return the ``(property_name, property_source)`` pairs *dependency* uses.

    Raises:
        MalformedRequirementError: A requirement names a property but not
            where it is declared.
    """
    keys: Set[PropertyKey] = set()
    for requirement in dependency.property_requirements():
        if not requirement.property_source:
            raise MalformedRequirementError(
                "Property-bound requirement has no property_source",
                dependency_name=dependency.name,
                file=requirement.file,
                property_name=requirement.property_name,
            )
        keys.add((requirement.property_name, requirement.property_source))
    return keys


class PropertyAnalyzer:
    """Answers whether a dependency's property is shared with another dependency.

    Args:
        dependencies: The full dependency set of the request.
    """

    def __init__(self, dependencies: Sequence[Dependency]) -> None:
        self._property_based: List[Dependency] = [
            dep for dep in dependencies if dep.property_requirements()
        ]

    def shared_keys(self, dependency: Dependency) -> Set[PropertyKey]:
        """Property keys of *dependency* that another dependency also uses."""
        own = binding_keys(dependency)
        if not own:
            return set()

        shared: Set[PropertyKey] = set()
        for other in self._property_based:
            if other.name == dependency.name:
                continue
            shared |= own & binding_keys(other)
        return shared

    def is_shared(self, dependency: Dependency) -> bool:
        """True if a different dependency binds to one of the same properties."""
        shared = bool(self.shared_keys(dependency))
        logger.debug("Property sharing for %s: %s", dependency.name, shared)
        return shared

    def sharing_group(self, dependency: Dependency) -> List[Dependency]:
        """*dependency* followed by every other dependency sharing its properties.

        Each ``(name, directory)`` occurrence appears once.
        """
        keys = self.shared_keys(dependency)
        group = [dependency]
        seen = {dependency.key}

        for other in self._property_based:
            if other.name == dependency.name or other.key in seen:
                continue
            if keys & binding_keys(other):
                group.append(other)
                seen.add(other.key)

        return group
