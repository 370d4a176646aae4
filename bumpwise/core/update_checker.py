"""Update checking for a single dependency.

:class:`UpdateChecker` is the entry point the orchestration layer talks
to. It wires the per-request components together:

1. **VersionSelector** picks the latest or lowest security-fix target.
2. **PropertyAnalyzer** decides whether the dependency's version property
   is shared with other dependencies.
3. **PropertyUpdatePlanner** proves a joint update is possible when it is.
4. **ConflictingDependencyResolver** checks the target against the
   lockfile graph.
5. **RequirementsRewriter** produces the updated requirements last.

Every "cannot update" outcome comes back as ``None``/``False`` or as an
:class:`UpdateReason`; only malformed input from the parser raises.

Typical usage::

    context = ResolutionContext(manifests, parser, StaticVersionSource(listing))
    checker = UpdateChecker(dependency, context)

    verdict = await checker.verdict()
    if verdict.can_update:
        requirements = await checker.updated_requirements(verdict.target_version)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from bumpwise.core.conflict_resolver import ConflictingDependencyResolver
from bumpwise.core.context import ResolutionContext
from bumpwise.core.property_analyzer import PropertyAnalyzer
from bumpwise.core.property_planner import JointUpdatePlan, PropertyUpdatePlanner
from bumpwise.core.property_resolver import PropertyResolver
from bumpwise.core.requirements_rewriter import RequirementsRewriter
from bumpwise.core.version_selector import SelectionMode, VersionSelector
from bumpwise.models.candidate import VersionCandidate
from bumpwise.models.conflict import ConflictCheckStatus, ConflictRecord, ConflictReport
from bumpwise.models.dependency import Dependency, Requirement
from bumpwise.models.manifest import PropertyEdit
from bumpwise.utils.logger import get_logger
from bumpwise.utils.version_utils import parse_version

logger = get_logger("update_checker")

__all__ = ["UpdateChecker", "UpdateReason", "UpdateVerdict"]


class UpdateReason(Enum):
    """Why a verdict came out the way it did."""

    UPDATE_AVAILABLE = "update_available"
    UP_TO_DATE = "up_to_date"
    INDETERMINATE_VERSION = "indeterminate_version"
    NO_SECURITY_FIX = "no_security_fix"
    REQUIREMENTS_LOCKED = "requirements_locked"
    NO_COMMON_VERSION = "no_common_version"
    CONFLICTING_DEPENDENCIES = "conflicting_dependencies"


@dataclass
class UpdateVerdict:
    """Final answer for one dependency.

    Attributes:
        can_update: Whether an update to ``target_version`` is safe.
        target_version: Version the dependency should move to, if any.
        reason: Why the verdict is what it is.
        conflicts: Packages blocking the target in the lockfile graph.
        conflict_status: How the conflict check ended; ``None`` when the
            check was disabled or never reached.
    """

    can_update: bool
    target_version: Optional[str]
    reason: UpdateReason
    conflicts: List[ConflictRecord] = field(default_factory=list)
    conflict_status: Optional[ConflictCheckStatus] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "can_update": self.can_update,
            "target_version": self.target_version,
            "reason": self.reason.value,
            "conflicts": [c.to_json() for c in self.conflicts],
            "conflict_status": self.conflict_status.value if self.conflict_status else None,
        }


class UpdateChecker:
    """Answer the update questions for one dependency within one request.

    Args:
        dependency: The dependency under consideration.
        context: Request-scoped context shared by every checker of the request.
        conflict_resolver: Lockfile conflict checker; built from the
            context's manifests and configuration when omitted.
        rewriter: Requirements rewriter; the default transform when omitted.
    """

    def __init__(
        self,
        dependency: Dependency,
        context: ResolutionContext,
        *,
        conflict_resolver: Optional[ConflictingDependencyResolver] = None,
        rewriter: Optional[RequirementsRewriter] = None,
    ) -> None:
        self.dependency = dependency
        self.context = context

        self.property_resolver = PropertyResolver(context.manifests)
        self.selector = VersionSelector(context)
        self.planner = PropertyUpdatePlanner(context, self.property_resolver)
        self.conflict_resolver = conflict_resolver or ConflictingDependencyResolver.from_config(
            context.manifests, context.config
        )
        self.rewriter = rewriter or RequirementsRewriter()

        self._analyzer: Optional[PropertyAnalyzer] = None

    @property
    def analyzer(self) -> PropertyAnalyzer:
        if self._analyzer is None:
            self._analyzer = PropertyAnalyzer(self.context.all_dependencies())
        return self._analyzer

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def vulnerable(self) -> bool:
        """Whether the current version matches any advisory."""
        return self.selector.is_vulnerable(self.dependency)

    def version_comes_from_shared_property(self) -> bool:
        """True if another dependency is bound to the same property declaration.

        Raises:
            MalformedRequirementError: A requirement names a property but
                not where it is declared.
        """
        return self.analyzer.is_shared(self.dependency)

    def requirements_unlocked_or_can_be(self) -> bool:
        """False when any property the dependency uses cannot be rewritten.

        A property declared in an external manifest, or not declared
        anywhere reachable, locks the requirement.
        """
        for requirement in self.dependency.property_requirements():
            if not self.property_resolver.is_editable(
                requirement.property_name, requirement.file
            ):
                logger.info(
                    "%s is locked: property %s is not editable from %s",
                    self.dependency.name,
                    requirement.property_name,
                    requirement.file,
                )
                return False
        return True

    async def up_to_date(self) -> bool:
        """True if nothing newer is known and the current version is safe."""
        current = self.dependency.parsed_version
        if current is None or self.vulnerable():
            return False

        latest = parse_version(await self.latest_version())
        return latest is not None and latest <= current

    async def can_update(self) -> bool:
        """True if a resolvable version above the current one exists."""
        current = self.dependency.parsed_version
        if current is None or not self.requirements_unlocked_or_can_be():
            return False

        preferred = parse_version(await self.preferred_resolvable_version())
        return preferred is not None and preferred > current

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    async def latest_version(self) -> Optional[str]:
        candidate = await self.selector.select_target(self.dependency, SelectionMode.LATEST)
        return candidate.version if candidate else None

    async def lowest_security_fix_version(self) -> Optional[str]:
        """Smallest non-vulnerable version at or above the current one."""
        candidate = await self.selector.select_target(
            self.dependency, SelectionMode.LOWEST_SECURITY_FIX
        )
        return candidate.version if candidate else None

    async def latest_resolvable_version(self) -> Optional[str]:
        """Latest version reachable without breaking shared properties.

        ``None`` when the requirements are locked or the dependencies
        sharing a property have no common newer version.
        """
        if not self.requirements_unlocked_or_can_be():
            return None

        if self.version_comes_from_shared_property():
            plan = await self.joint_update_plan()
            return plan.property_value if plan.possible else None

        return await self.latest_version()

    async def lowest_resolvable_security_fix_version(self) -> Optional[str]:
        if not self.requirements_unlocked_or_can_be():
            return None

        if self.vulnerable() and self.version_comes_from_shared_property():
            plan = await self.joint_update_plan(prefer_lowest=True)
            return plan.property_value if plan.possible else None

        return await self.lowest_security_fix_version()

    def latest_resolvable_version_with_no_unlock(self) -> Optional[str]:
        # A version declared in one place has no range to resolve within
        return None

    async def preferred_resolvable_version(self) -> Optional[str]:
        """Security fix when vulnerable, otherwise the latest resolvable version."""
        if self.vulnerable():
            return await self.lowest_resolvable_security_fix_version()
        return await self.latest_resolvable_version()

    async def joint_update_plan(self, *, prefer_lowest: bool = False) -> JointUpdatePlan:
        """Plan for moving every dependency sharing the property together."""
        return await self.context.memoize(
            ("plan", self.dependency.key, prefer_lowest),
            lambda: self.planner.plan_joint_update(
                self.dependency,
                self.analyzer.sharing_group(self.dependency),
                prefer_lowest=prefer_lowest,
            ),
        )

    # ------------------------------------------------------------------
    # Requirements
    # ------------------------------------------------------------------

    async def updated_requirements(
        self,
        chosen_version: Optional[str] = None,
    ) -> List[Requirement]:
        """Requirements after moving to *chosen_version*.

        Defaults to :meth:`preferred_resolvable_version`; with no version
        to move to, the current requirements come back unchanged.
        """
        version = chosen_version or await self.preferred_resolvable_version()
        return await self._rewrite_for(self.dependency, version)

    async def property_edits(self, chosen_version: Optional[str] = None) -> List[PropertyEdit]:
        """Property declarations to rewrite, one edit per declaration."""
        version = chosen_version or await self.preferred_resolvable_version()
        if version is None or not self.requirements_unlocked_or_can_be():
            return []
        return self.rewriter.property_edits(
            self.dependency.requirements,
            version,
            self._property_names(self.dependency),
        )

    async def updated_dependencies_after_full_unlock(self) -> List[Dependency]:
        """Every dependency the update moves, with rewritten requirements.

        For a shared property this is the whole group at the planned value;
        otherwise just this dependency. Empty when no update is possible.
        """
        if self.requirements_unlocked_or_can_be() and self.version_comes_from_shared_property():
            plan = await self.joint_update_plan(prefer_lowest=self.vulnerable())
            if not plan.possible:
                return []
            moves = [
                (member, plan.resulting_dependency_versions[member.name])
                for member in plan.group
            ]
        else:
            version = await self.preferred_resolvable_version()
            if version is None:
                return []
            moves = [(self.dependency, version)]

        updated: List[Dependency] = []
        for member, version in moves:
            requirements = await self._rewrite_for(member, version)
            updated.append(
                member.with_changes(
                    version=version,
                    requirements=tuple(requirements),
                    previous_version=member.version,
                    previous_requirements=member.requirements,
                )
            )
        return updated

    async def _rewrite_for(
        self,
        dependency: Dependency,
        version: Optional[str],
    ) -> List[Requirement]:
        if version is None:
            return list(dependency.requirements)

        candidate = await self._listed_candidate(dependency.name, version)
        return self.rewriter.rewrite(
            dependency.requirements,
            version,
            new_source_url=candidate.source_url if candidate else None,
            properties_to_update=self._property_names(dependency),
        )

    def _property_names(self, dependency: Dependency) -> List[str]:
        if not self.requirements_unlocked_or_can_be():
            return []
        return [req.property_name for req in dependency.property_requirements()]

    async def _listed_candidate(self, name: str, version: str) -> Optional[VersionCandidate]:
        target = parse_version(version)
        for candidate in await self.context.available_versions(name):
            if candidate.parsed == target:
                return candidate
        return None

    # ------------------------------------------------------------------
    # Conflicts
    # ------------------------------------------------------------------

    async def conflicting_dependencies(self, target_version: str) -> List[ConflictRecord]:
        """Packages whose requirement on this dependency excludes *target_version*."""
        report = await self.conflict_report(target_version)
        return report.conflicts

    async def conflict_report(self, target_version: str) -> ConflictReport:
        return await self.context.memoize(
            ("conflicts", self.dependency.key, target_version),
            lambda: self.conflict_resolver.check(self.dependency, target_version),
        )

    # ------------------------------------------------------------------
    # Verdict
    # ------------------------------------------------------------------

    async def verdict(self) -> UpdateVerdict:
        """Decide whether, and to what, the dependency can be updated.

        The property feasibility check and the conflict check do not depend
        on each other and run concurrently.
        """
        return await self.context.memoize(("verdict", self.dependency.key), self._verdict)

    async def _verdict(self) -> UpdateVerdict:
        current = self.dependency.parsed_version
        if current is None:
            return UpdateVerdict(False, None, UpdateReason.INDETERMINATE_VERSION)

        vulnerable = self.vulnerable()
        mode = SelectionMode.LOWEST_SECURITY_FIX if vulnerable else SelectionMode.LATEST
        candidate = await self.selector.select_target(self.dependency, mode)

        if candidate is None:
            reason = UpdateReason.NO_SECURITY_FIX if vulnerable else UpdateReason.UP_TO_DATE
            return UpdateVerdict(False, None, reason)
        if candidate.parsed <= current:
            return UpdateVerdict(False, None, UpdateReason.UP_TO_DATE)

        check_conflicts = self.context.config.check_conflicts
        if check_conflicts:
            resolvable, report = await asyncio.gather(
                self.preferred_resolvable_version(),
                self.conflict_report(candidate.version),
            )
        else:
            resolvable, report = await self.preferred_resolvable_version(), None

        if resolvable is None:
            return UpdateVerdict(False, None, self._blocked_reason(vulnerable))

        if report is not None and resolvable != candidate.version:
            report = await self.conflict_report(resolvable)

        status = report.status if report is not None else None
        if report is not None and report.has_conflicts():
            logger.info(
                "%s cannot move to %s: %d conflicting package(s)",
                self.dependency.name,
                resolvable,
                len(report),
            )
            return UpdateVerdict(
                False,
                resolvable,
                UpdateReason.CONFLICTING_DEPENDENCIES,
                conflicts=list(report.conflicts),
                conflict_status=status,
            )

        if parse_version(resolvable) <= current:
            return UpdateVerdict(False, None, UpdateReason.UP_TO_DATE, conflict_status=status)

        return UpdateVerdict(
            True,
            resolvable,
            UpdateReason.UPDATE_AVAILABLE,
            conflict_status=status,
        )

    def _blocked_reason(self, vulnerable: bool) -> UpdateReason:
        if not self.requirements_unlocked_or_can_be():
            return UpdateReason.REQUIREMENTS_LOCKED
        if self.version_comes_from_shared_property():
            return UpdateReason.NO_COMMON_VERSION
        return UpdateReason.NO_SECURITY_FIX if vulnerable else UpdateReason.UP_TO_DATE
