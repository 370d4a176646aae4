"""Transitive conflict detection for bumpwise.

Given a target version for a dependency, find the packages in the resolved
lockfile graph whose own requirement on that dependency the target would
violate. Walking the graph is delegated to an ecosystem helper run as a
subprocess inside a scratch copy of the manifests.

Helper selection is a pure function of which lockfiles are present. When
both npm and yarn lockfiles exist the npm helper is used: it copes with a
manifest that has drifted out of sync with its lockfile, which the yarn
helper does not.

A helper that cannot run, fails, or times out yields *no* conflicts
(fail-open): a broken helper must not block every update. The returned
:class:`~bumpwise.models.conflict.ConflictReport` still records that the
check was skipped.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from bumpwise.config import BumpwiseConfig
from bumpwise.constants import (
    DEFAULT_HELPER_COMMAND,
    DEFAULT_RESOLVER_TIMEOUT,
    NPM_CONFLICTS_FUNCTION,
    NPM_LOCKFILES,
    YARN_CONFLICTS_FUNCTION,
    YARN_LOCKFILES,
)
from bumpwise.exceptions import FileOperationError, HelperSubprocessFailed
from bumpwise.models.conflict import ConflictCheckStatus, ConflictRecord, ConflictReport
from bumpwise.models.dependency import Dependency
from bumpwise.models.manifest import ManifestFile
from bumpwise.utils.filesystem import materialize_files, scratch_workspace
from bumpwise.utils.logger import get_logger
from bumpwise.utils.subprocess import run_helper_subprocess

logger = get_logger("conflict_resolver")

__all__ = [
    "ResolverKind",
    "select_resolver_kind",
    "ConflictingDependencyResolver",
]


class ResolverKind(Enum):
    """Lockfile graph helpers bumpwise knows how to drive."""

    NPM = ("npm", NPM_LOCKFILES, NPM_CONFLICTS_FUNCTION)
    YARN = ("yarn", YARN_LOCKFILES, YARN_CONFLICTS_FUNCTION)

    def __init__(self, label: str, lockfiles: Tuple[str, ...], function: str) -> None:
        self.label = label
        self.lockfiles = tuple(lockfiles)
        self.function = function


#: Preference order when several lockfile formats coexist.
_PREFERENCE: Tuple[ResolverKind, ...] = (ResolverKind.NPM, ResolverKind.YARN)


def select_resolver_kind(file_names: Iterable[str]) -> Optional[ResolverKind]:
    """Pick the helper for the lockfiles present, or ``None`` if there are none.

    Args:
        file_names: Base names of the request's files.

    Example::

        >>> select_resolver_kind(["package.json", "yarn.lock", "package-lock.json"])
        <ResolverKind.NPM: ...>
    """
    present = set(file_names)
    for kind in _PREFERENCE:
        if present.intersection(kind.lockfiles):
            return kind
    return None


class ConflictingDependencyResolver:
    """Ask a lockfile helper which packages block a target version.

    Args:
        dependency_files: Manifests and lockfiles of the request.
        helper_command: Native helper executable plus fixed arguments.
        timeout: Seconds one helper run may take.
    """

    def __init__(
        self,
        dependency_files: Sequence[ManifestFile],
        *,
        helper_command: Sequence[str] = DEFAULT_HELPER_COMMAND,
        timeout: Optional[float] = DEFAULT_RESOLVER_TIMEOUT,
    ) -> None:
        self.dependency_files = list(dependency_files)
        self.helper_command = list(helper_command)
        self.timeout = timeout

    @classmethod
    def from_config(
        cls,
        dependency_files: Sequence[ManifestFile],
        config: BumpwiseConfig,
    ) -> "ConflictingDependencyResolver":
        return cls(
            dependency_files,
            helper_command=config.helper_command,
            timeout=config.resolver_timeout,
        )

    @property
    def resolver_kind(self) -> Optional[ResolverKind]:
        return select_resolver_kind(f.basename for f in self.dependency_files)

    async def find_conflicts(
        self,
        dependency: Dependency,
        target_version: str,
    ) -> List[ConflictRecord]:
        """Packages whose requirement on *dependency* excludes *target_version*.

        Never raises for helper trouble; see :meth:`check` for the status.
        """
        report = await self.check(dependency, target_version)
        return report.conflicts

    async def check(self, dependency: Dependency, target_version: str) -> ConflictReport:
        """Run the conflict check and report how it ended."""
        kind = self.resolver_kind
        if kind is None:
            logger.debug("No lockfile present; nothing conflicts with %s", dependency.name)
            return ConflictReport(status=ConflictCheckStatus.SKIPPED_NO_LOCKFILE)

        try:
            payload = await self._run_helper(kind, dependency, target_version)
            conflicts = [ConflictRecord.from_helper_payload(item) for item in payload or []]
        except (HelperSubprocessFailed, FileOperationError) as exc:
            logger.warning(
                "Conflict check for %s@%s skipped: %s",
                dependency.name,
                target_version,
                exc,
            )
            return ConflictReport(status=ConflictCheckStatus.SKIPPED_RESOLVER_FAILED)
        except (KeyError, TypeError, AttributeError) as exc:
            logger.warning(
                "Conflict helper returned malformed records for %s: %s",
                dependency.name,
                exc,
            )
            return ConflictReport(status=ConflictCheckStatus.SKIPPED_RESOLVER_FAILED)

        logger.info(
            "%s helper found %d conflict(s) for %s@%s",
            kind.label,
            len(conflicts),
            dependency.name,
            target_version,
        )
        return ConflictReport(conflicts=conflicts, status=ConflictCheckStatus.COMPLETED)

    async def _run_helper(
        self,
        kind: ResolverKind,
        dependency: Dependency,
        target_version: str,
    ) -> Any:
        # Materialization is blocking file I/O; keep it off the event loop
        with scratch_workspace() as workdir:
            await asyncio.get_running_loop().run_in_executor(
                None, materialize_files, workdir, self.dependency_files
            )
            return await run_helper_subprocess(
                self.helper_command,
                kind.function,
                [str(workdir), dependency.name, str(target_version)],
                cwd=workdir,
                timeout=self.timeout,
            )
