"""Target version selection for bumpwise.

Two targets can be chosen for a dependency:

1. **Latest** — the newest listed version that is not ignored.
2. **Lowest security fix** — the smallest listed version, at or above the
   current one, that no advisory marks vulnerable and that is not ignored.

Some ecosystems decide the effective version from declared constraints
rather than from one registry lookup. When the context carries a
:class:`~bumpwise.core.context.ManifestFixer`, the security fix is
confirmed by applying it to a copy of the manifests, re-parsing them, and
reading back the version the same ``(name, directory)`` dependency ends up
with. If that re-resolution yields nothing usable the selector returns
``None`` rather than guessing.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from bumpwise.core.context import ResolutionContext
from bumpwise.exceptions import BumpwiseError
from bumpwise.models.candidate import VersionCandidate
from bumpwise.models.dependency import Dependency
from bumpwise.utils.logger import get_logger
from bumpwise.utils.version_utils import parse_version

logger = get_logger("version_selector")

__all__ = ["SelectionMode", "VersionSelector"]


class SelectionMode(Enum):
    """Which target the selector is asked for."""

    LATEST = "latest"
    LOWEST_SECURITY_FIX = "lowest_security_fix"


class VersionSelector:
    """Choose the target version for a dependency.

    Args:
        context: Request-scoped resolution context.

    Example::

        >>> selector = VersionSelector(context)
        >>> candidate = await selector.select_target(dep, SelectionMode.LATEST)
        >>> candidate.version
        '3.0'
    """

    def __init__(self, context: ResolutionContext) -> None:
        self.context = context

    def is_vulnerable(self, dependency: Dependency) -> bool:
        """True if the current version matches any advisory.

        An indeterminate current version is never judged vulnerable.
        """
        if not dependency.has_determinate_version:
            return False
        return self.context.is_vulnerable(dependency.name, dependency.parsed_version)

    async def select_target(
        self,
        dependency: Dependency,
        mode: SelectionMode,
    ) -> Optional[VersionCandidate]:
        """Return the target for *mode*, or ``None`` when there is none.

        For :attr:`SelectionMode.LOWEST_SECURITY_FIX`, ``None`` means no
        safe version exists at or above the current one; an already-safe
        dependency gets a candidate back (possibly its current version).
        """
        return await self.context.memoize(
            ("select", dependency.key, mode),
            lambda: self._select(dependency, mode),
        )

    async def _select(
        self,
        dependency: Dependency,
        mode: SelectionMode,
    ) -> Optional[VersionCandidate]:
        candidates = await self._eligible_candidates(dependency)

        if mode is SelectionMode.LATEST:
            target = candidates[-1] if candidates else None
            logger.debug(
                "Latest for %s: %s", dependency.name, target.version if target else None
            )
            return target

        current = dependency.parsed_version
        if current is None:
            logger.debug("Skipping security fix for %s: indeterminate version", dependency.name)
            return None

        fixes = [c for c in candidates if c.parsed >= current and c.clears_advisories]
        if not fixes:
            if self.is_vulnerable(dependency):
                logger.info("No non-vulnerable version of %s is available", dependency.name)
            return None

        lowest = fixes[0]
        if self.context.fixer is None:
            return lowest
        return await self._re_resolve(dependency, lowest, candidates)

    async def _eligible_candidates(self, dependency: Dependency) -> List[VersionCandidate]:
        """Listed versions, ascending, minus ignored and unwanted pre-releases.

        Each candidate is annotated with whether it clears the advisories.
        """
        current = dependency.parsed_version
        allow_pre = self.context.config.allow_prereleases or (
            current is not None and current.is_prerelease
        )

        eligible: List[VersionCandidate] = []
        for candidate in await self.context.available_versions(dependency.name):
            if candidate.parsed.is_prerelease and not allow_pre:
                continue
            if self.context.is_ignored(dependency.name, candidate.parsed):
                continue
            eligible.append(
                VersionCandidate(
                    version=candidate.version,
                    source_url=candidate.source_url,
                    clears_advisories=not self.context.is_vulnerable(
                        dependency.name, candidate.parsed
                    ),
                )
            )
        return eligible

    async def _re_resolve(
        self,
        dependency: Dependency,
        proposed: VersionCandidate,
        candidates: List[VersionCandidate],
    ) -> Optional[VersionCandidate]:
        """Apply the fix hypothetically and read back the effective version."""
        assert self.context.fixer is not None

        try:
            patched = await self.context.fixer.fix(self.context.manifests, dependency, proposed)
            reparsed = self.context.parser.parse(patched)
        except BumpwiseError as exc:
            logger.warning("Hypothetical fix for %s failed: %s", dependency.name, exc)
            return None

        updated = next(
            (d for d in reparsed if d.key == dependency.key),
            None,
        )
        resolved = parse_version(updated.version) if updated else None
        if resolved is None:
            logger.info(
                "Re-resolution of %s produced no usable version; no fix reported",
                dependency.name,
            )
            return None

        match = next((c for c in candidates if c.parsed == resolved), None)
        if match is None or not match.clears_advisories or resolved < dependency.parsed_version:
            logger.info(
                "Re-resolved %s to %s, which is not an eligible fix",
                dependency.name,
                updated.version,
            )
            return None

        logger.debug("Re-resolved security fix for %s: %s", dependency.name, match.version)
        return match
