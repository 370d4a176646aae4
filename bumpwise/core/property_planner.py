"""Joint ("full unlock") update planning for shared properties.

When a property is shared by several dependencies, the only safe update is
one new property value that every dependency in the group accepts. Each
member contributes a predicate built from:

- the versions the registry actually lists for that member,
- its own requirements that are not bound to a property,
- the security advisories affecting it, and
- the versions the caller asked to ignore for it.

:class:`PropertyUpdatePlanner` searches the primary dependency's listed
versions for a value satisfying every predicate at once. A property
declared outside the repository makes the plan infeasible before any
search: there is no file to rewrite.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from bumpwise.core.context import ResolutionContext
from bumpwise.core.property_resolver import PropertyResolver
from bumpwise.models.candidate import VersionCandidate
from bumpwise.models.dependency import Dependency
from bumpwise.utils.logger import get_logger
from bumpwise.utils.version_utils import Constraint, InvalidConstraint

logger = get_logger("property_planner")

__all__ = ["PlanOutcome", "JointUpdatePlan", "PropertyUpdatePlanner"]


class PlanOutcome(Enum):
    """Why a joint update plan is, or is not, possible."""

    FEASIBLE = "feasible"
    EXTERNAL_PROPERTY = "external_property"  # Declared in a non-editable scope
    PROPERTY_NOT_FOUND = "property_not_found"  # No reachable declaration
    INDETERMINATE_VERSION = "indeterminate_version"  # Current version unparseable
    NO_COMMON_VERSION = "no_common_version"  # Predicates have no common value


@dataclass
class JointUpdatePlan:
    """Result of planning a joint update.

    Attributes:
        outcome: Feasibility verdict and reason.
        property_value: New value for the shared property, when feasible.
        candidate: Registry candidate for that value (carries the source URL).
        resulting_dependency_versions: ``name -> version`` after the update.
        group: Dependencies that move together, primary first.
    """

    outcome: PlanOutcome
    property_value: Optional[str] = None
    candidate: Optional[VersionCandidate] = None
    resulting_dependency_versions: Dict[str, str] = field(default_factory=dict)
    group: List[Dependency] = field(default_factory=list)

    @property
    def possible(self) -> bool:
        return self.outcome is PlanOutcome.FEASIBLE

    @property
    def reason(self) -> Optional[str]:
        """Infeasibility reason (``"no_common_version"`` ...), ``None`` when possible."""
        return None if self.possible else self.outcome.value


class PropertyUpdatePlanner:
    """Find one shared-property value compatible with every dependency in a group.

    Args:
        context: Request-scoped resolution context.
        resolver: Property declaration resolver for the same manifests.
    """

    def __init__(self, context: ResolutionContext, resolver: PropertyResolver) -> None:
        self.context = context
        self.resolver = resolver

    async def plan_joint_update(
        self,
        dependency: Dependency,
        group: Sequence[Dependency],
        *,
        prefer_lowest: bool = False,
    ) -> JointUpdatePlan:
        """Plan a joint update of *group* led by *dependency*.

        Args:
            dependency: Primary dependency being updated.
            group: Every dependency sharing its property (primary included).
            prefer_lowest: Choose the lowest common value instead of the
                highest (security fixes prefer the smallest safe bump).

        Returns:
            A :class:`JointUpdatePlan`; infeasibility is reported through
            ``outcome``, never raised.
        """
        members = list(group)

        blocked = self._check_declarations(dependency)
        if blocked is not None:
            return JointUpdatePlan(outcome=blocked, group=members)

        current = dependency.parsed_version
        if current is None:
            return JointUpdatePlan(outcome=PlanOutcome.INDETERMINATE_VERSION, group=members)

        candidates = [
            c
            for c in await self.context.available_versions(dependency.name)
            if c.parsed > current and self._prerelease_allowed(c, dependency)
        ]
        if not prefer_lowest:
            candidates.reverse()

        for candidate in candidates:
            if await self._accepted_by_all(candidate, members):
                logger.info(
                    "Joint update of %s possible at %s",
                    ", ".join(m.name for m in members),
                    candidate.version,
                )
                return JointUpdatePlan(
                    outcome=PlanOutcome.FEASIBLE,
                    property_value=candidate.version,
                    candidate=candidate,
                    resulting_dependency_versions={
                        member.name: candidate.version for member in members
                    },
                    group=members,
                )

        logger.info(
            "No common version for %s sharing a property",
            ", ".join(m.name for m in members),
        )
        return JointUpdatePlan(outcome=PlanOutcome.NO_COMMON_VERSION, group=members)

    def _check_declarations(self, dependency: Dependency) -> Optional[PlanOutcome]:
        """Fail closed on missing or external declarations of the primary's properties."""
        for requirement in dependency.property_requirements():
            declaration = self.resolver.resolve(requirement.property_name, requirement.file)
            if declaration is None:
                return PlanOutcome.PROPERTY_NOT_FOUND
            if not declaration.editable:
                logger.info(
                    "Property %s is declared in external %s; joint update impossible",
                    requirement.property_name,
                    declaration.declaring_file,
                )
                return PlanOutcome.EXTERNAL_PROPERTY
        return None

    def _prerelease_allowed(self, candidate: VersionCandidate, dependency: Dependency) -> bool:
        if not candidate.parsed.is_prerelease or self.context.config.allow_prereleases:
            return True
        current = dependency.parsed_version
        return current is not None and current.is_prerelease

    async def _accepted_by_all(
        self,
        candidate: VersionCandidate,
        members: Sequence[Dependency],
    ) -> bool:
        for member in members:
            if not await self._accepts(member, candidate):
                logger.debug("%s rejects %s", member.name, candidate.version)
                return False
        return True

    async def _accepts(self, member: Dependency, candidate: VersionCandidate) -> bool:
        version = candidate.parsed
        listed = {c.parsed for c in await self.context.available_versions(member.name)}
        if version not in listed:
            return False

        if self.context.is_ignored(member.name, version):
            return False
        if self.context.is_vulnerable(member.name, version):
            return False

        for requirement in member.direct_requirements():
            try:
                constraint = Constraint(requirement.requirement)
            except InvalidConstraint:
                logger.warning(
                    "Unparseable constraint %r for %s in %s; rejecting",
                    requirement.requirement,
                    member.name,
                    requirement.file,
                )
                return False
            if not constraint.contains(version):
                return False

        return True

