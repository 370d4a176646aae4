"""
Core functionality exports for bumpwise.

The decision core, leaves first:

    from bumpwise.core import ResolutionContext, UpdateChecker

Collaborators (parser, version source, fixer) are plain protocols; any
object with the right methods can be passed to :class:`ResolutionContext`.
"""

from __future__ import annotations

from bumpwise.core.registry import JSONRegistrySource, StaticVersionSource, VersionSource
from bumpwise.core.context import ManifestFixer, ResolutionContext, StructuralParser
from bumpwise.core.property_resolver import PropertyResolver
from bumpwise.core.property_analyzer import PropertyAnalyzer
from bumpwise.core.property_planner import JointUpdatePlan, PlanOutcome, PropertyUpdatePlanner
from bumpwise.core.version_selector import SelectionMode, VersionSelector
from bumpwise.core.conflict_resolver import (
    ConflictingDependencyResolver,
    ResolverKind,
    select_resolver_kind,
)
from bumpwise.core.requirements_rewriter import RequirementsRewriter, rewrite_constraint
from bumpwise.core.update_checker import UpdateChecker, UpdateReason, UpdateVerdict

__all__ = [
    "JSONRegistrySource",
    "StaticVersionSource",
    "VersionSource",
    "ManifestFixer",
    "ResolutionContext",
    "StructuralParser",
    "PropertyResolver",
    "PropertyAnalyzer",
    "JointUpdatePlan",
    "PlanOutcome",
    "PropertyUpdatePlanner",
    "SelectionMode",
    "VersionSelector",
    "ConflictingDependencyResolver",
    "ResolverKind",
    "select_resolver_kind",
    "RequirementsRewriter",
    "rewrite_constraint",
    "UpdateChecker",
    "UpdateReason",
    "UpdateVerdict",
]
