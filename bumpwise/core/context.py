"""Request-scoped resolution context for bumpwise.

One :class:`ResolutionContext` is built per update request. It holds the
immutable manifest snapshot, the collaborators the core consumes, and a
memo of expensive sub-results (version listings, parses, plans). Nothing
is cached across requests: a new request means a new context.

Collaborators are structural protocols:

- :class:`StructuralParser` — manifests → dependencies (idempotent).
- :class:`~bumpwise.core.registry.VersionSource` — available versions.
- :class:`ManifestFixer` — applies a hypothetical security fix to the
  manifest set, for ecosystems whose effective version is a function of
  declared constraints.
"""

from __future__ import annotations

import asyncio
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Hashable,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)

from bumpwise.config import BumpwiseConfig
from bumpwise.core.registry import VersionSource
from bumpwise.exceptions import NetworkError
from bumpwise.models.candidate import SecurityAdvisory, VersionCandidate
from bumpwise.models.dependency import Dependency
from bumpwise.models.manifest import ManifestFile
from bumpwise.utils.logger import get_logger
from bumpwise.utils.version_utils import Constraint, InvalidConstraint, VersionLike, matches_any

logger = get_logger("context")

__all__ = ["ResolutionContext", "StructuralParser", "ManifestFixer"]


class StructuralParser(Protocol):
    """Turns a manifest set into dependencies; must be re-invokable."""

    def parse(self, manifests: Sequence[ManifestFile]) -> List[Dependency]:
        ...


class ManifestFixer(Protocol):
    """Applies a security fix for *dependency* to a copy of the manifests."""

    async def fix(
        self,
        manifests: Sequence[ManifestFile],
        dependency: Dependency,
        candidate: VersionCandidate,
    ) -> List[ManifestFile]:
        ...


class ResolutionContext:
    """Everything one resolution request needs, plus its memo.

    Args:
        manifests: Manifest and lockfile snapshot for the request.
        parser: Structural parser collaborator.
        version_source: Registry listing collaborator.
        advisories: Security advisories; filtered per dependency name.
        ignored_versions: ``name -> constraints`` the caller asked to skip.
        config: Loaded configuration (defaults when omitted).
        fixer: Optional hypothetical-fix collaborator.

    Example::

        >>> context = ResolutionContext(
        ...     manifests, parser, StaticVersionSource({"lib-a": ["1.0", "2.0"]})
        ... )
        >>> versions = await context.available_versions("lib-a")
    """

    def __init__(
        self,
        manifests: Sequence[ManifestFile],
        parser: StructuralParser,
        version_source: VersionSource,
        *,
        advisories: Sequence[SecurityAdvisory] = (),
        ignored_versions: Optional[Mapping[str, Sequence[str]]] = None,
        config: Optional[BumpwiseConfig] = None,
        fixer: Optional[ManifestFixer] = None,
    ) -> None:
        self.manifests: Tuple[ManifestFile, ...] = tuple(manifests)
        self.parser = parser
        self.version_source = version_source
        self.advisories: Tuple[SecurityAdvisory, ...] = tuple(advisories)
        self.ignored_versions: Dict[str, Tuple[str, ...]] = {
            name: tuple(values) for name, values in (ignored_versions or {}).items()
        }
        self.config = config or BumpwiseConfig()
        self.fixer = fixer

        self._memo: Dict[Hashable, "asyncio.Future[Any]"] = {}
        self._dependencies: Optional[List[Dependency]] = None

    # ------------------------------------------------------------------
    # Memoization
    # ------------------------------------------------------------------

    async def memoize(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Compute ``await factory()`` once per *key* for this request.

        Concurrent callers for the same key await the same task, so the
        work runs exactly once even when checks overlap.
        """
        future = self._memo.get(key)
        if future is None:
            future = asyncio.ensure_future(factory())
            self._memo[key] = future
        return await future

    # ------------------------------------------------------------------
    # Dependency set
    # ------------------------------------------------------------------

    def all_dependencies(self) -> List[Dependency]:
        """Parse the request's manifests once and return every dependency."""
        if self._dependencies is None:
            self._dependencies = list(self.parser.parse(self.manifests))
            logger.debug("Parsed %d dependencies from manifests", len(self._dependencies))
        return self._dependencies

    # ------------------------------------------------------------------
    # Version listings
    # ------------------------------------------------------------------

    async def available_versions(self, name: str) -> List[VersionCandidate]:
        """Versions listed for *name*, ascending; empty when the listing fails."""
        return await self.memoize(("versions", name), lambda: self._fetch_versions(name))

    async def _fetch_versions(self, name: str) -> List[VersionCandidate]:
        try:
            candidates = await self.version_source.list_versions(name)
        except NetworkError as exc:
            logger.warning("Version listing unavailable for %s: %s", name, exc)
            return []
        return sorted(
            (c for c in candidates if c.parsed is not None),
            key=lambda c: c.parsed,
        )

    # ------------------------------------------------------------------
    # Advisory and ignore predicates
    # ------------------------------------------------------------------

    def advisories_for(self, name: str) -> List[SecurityAdvisory]:
        return [adv for adv in self.advisories if adv.dependency_name == name]

    def is_vulnerable(self, name: str, version: VersionLike) -> bool:
        """True if any advisory for *name* marks *version* vulnerable."""
        return any(adv.is_vulnerable(version) for adv in self.advisories_for(name))

    def is_ignored(self, name: str, version: VersionLike) -> bool:
        """True if *version* matches one of the ignored constraints for *name*.

        Ignore entries that fail to parse are logged and skipped.
        """
        constraints: List[Constraint] = []
        for raw in self.ignored_versions.get(name, ()):
            try:
                constraints.append(Constraint(raw, soft_bare=False))
            except InvalidConstraint:
                logger.warning("Skipping unparseable ignore rule %r for %s", raw, name)
        return matches_any(version, constraints)
