"""Tests for bumpwise.core.conflict_resolver.

The lockfile helper is a small ``python -c`` script. It reports one
conflict whose requirement string echoes the helper function it was asked
to run, and whose version says whether the lockfiles were materialized in
its working directory.
"""

from __future__ import annotations

import sys
from typing import List

import pytest

from bumpwise.config import BumpwiseConfig
from bumpwise.core.conflict_resolver import (
    ConflictingDependencyResolver,
    ResolverKind,
    select_resolver_kind,
)
from bumpwise.models import ConflictCheckStatus, ConflictRecord, Dependency, ManifestFile

ECHO_HELPER = [
    sys.executable,
    "-c",
    "import json, os, sys\n"
    "request = json.load(sys.stdin)\n"
    "workdir, name, target = request['args']\n"
    "present = sorted(f for f in os.listdir(workdir) if f.endswith(('.json', '.lock')))\n"
    "print(json.dumps({'result': [{'name': 'express', 'version': ','.join(present),"
    " 'requirement': request['function'] + ' ' + name + '@' + target}]}))\n",
]

FAILING_HELPER = [sys.executable, "-c", "import sys; sys.exit(1)"]

MALFORMED_HELPER = [
    sys.executable,
    "-c",
    "print('{\"result\": [{\"version\": \"1.0\"}]}')",
]

LIB_A = Dependency("lib-a", "1.0.0")


def _files(*names: str) -> List[ManifestFile]:
    return [ManifestFile(name="package.json", content="{}")] + [
        ManifestFile(name=name, content="lock") for name in names
    ]


@pytest.mark.unit
class TestSelectResolverKind:
    """Tests for the pure helper selection."""

    def test_npm_preferred_over_yarn(self) -> None:
        """Test npm wins when both lockfile formats are present."""
        kind = select_resolver_kind(["package.json", "yarn.lock", "package-lock.json"])

        assert kind is ResolverKind.NPM

    def test_shrinkwrap_is_npm(self) -> None:
        """Test npm-shrinkwrap.json selects the npm helper."""
        assert select_resolver_kind(["npm-shrinkwrap.json"]) is ResolverKind.NPM

    def test_yarn_only(self) -> None:
        """Test yarn.lock alone selects the yarn helper."""
        assert select_resolver_kind(["package.json", "yarn.lock"]) is ResolverKind.YARN

    def test_no_lockfile(self) -> None:
        """Test manifests without lockfiles select nothing."""
        assert select_resolver_kind(["package.json"]) is None

    def test_kind_attributes(self) -> None:
        """Test each kind carries its helper function name."""
        assert ResolverKind.NPM.function == "npm:findConflictingDependencies"
        assert ResolverKind.YARN.function == "yarn:findConflictingDependencies"
        assert "yarn.lock" in ResolverKind.YARN.lockfiles

    def test_nested_lockfile_uses_basename(self) -> None:
        """Test lockfiles in module directories are recognised."""
        resolver = ConflictingDependencyResolver([ManifestFile(name="web/yarn.lock")])

        assert resolver.resolver_kind is ResolverKind.YARN


@pytest.mark.integration
class TestConflictCheck:
    """Tests running the helper subprocess."""

    @pytest.mark.asyncio
    async def test_npm_helper_invoked_with_both_lockfiles(self) -> None:
        """Test the npm helper runs, never the yarn one, with files materialized."""
        resolver = ConflictingDependencyResolver(
            _files("package-lock.json", "yarn.lock"),
            helper_command=ECHO_HELPER,
        )

        report = await resolver.check(LIB_A, "2.0.0")

        assert report.status is ConflictCheckStatus.COMPLETED
        assert report.conflicts == [
            ConflictRecord(
                "express",
                "package-lock.json,package.json,yarn.lock",
                "npm:findConflictingDependencies lib-a@2.0.0",
            )
        ]

    @pytest.mark.asyncio
    async def test_yarn_helper(self) -> None:
        """Test the yarn helper runs when only yarn.lock exists."""
        resolver = ConflictingDependencyResolver(_files("yarn.lock"), helper_command=ECHO_HELPER)

        conflicts = await resolver.find_conflicts(LIB_A, "2.0.0")

        assert conflicts[0].requirement_string.startswith("yarn:findConflictingDependencies")

    @pytest.mark.asyncio
    async def test_no_lockfile_skips_helper(self) -> None:
        """Test no helper is started without a lockfile."""
        resolver = ConflictingDependencyResolver(
            _files(),
            helper_command=["/nonexistent/helper"],
        )

        report = await resolver.check(LIB_A, "2.0.0")

        assert report.conflicts == []
        assert report.status is ConflictCheckStatus.SKIPPED_NO_LOCKFILE

    @pytest.mark.asyncio
    async def test_helper_crash_fails_open(self) -> None:
        """Test a crashing helper yields no conflicts and a skipped status."""
        resolver = ConflictingDependencyResolver(
            _files("package-lock.json"),
            helper_command=FAILING_HELPER,
        )

        report = await resolver.check(LIB_A, "2.0.0")

        assert report.conflicts == []
        assert report.status is ConflictCheckStatus.SKIPPED_RESOLVER_FAILED
        assert await resolver.find_conflicts(LIB_A, "2.0.0") == []

    @pytest.mark.asyncio
    async def test_missing_helper_fails_open(self) -> None:
        """Test a helper that cannot start yields no conflicts."""
        resolver = ConflictingDependencyResolver(
            _files("package-lock.json"),
            helper_command=["/nonexistent/helper"],
        )

        assert await resolver.find_conflicts(LIB_A, "2.0.0") == []

    @pytest.mark.asyncio
    async def test_malformed_records_fail_open(self) -> None:
        """Test records without a package name are treated as a failed check."""
        resolver = ConflictingDependencyResolver(
            _files("package-lock.json"),
            helper_command=MALFORMED_HELPER,
        )

        report = await resolver.check(LIB_A, "2.0.0")

        assert report.status is ConflictCheckStatus.SKIPPED_RESOLVER_FAILED

    @pytest.mark.asyncio
    async def test_escaping_file_fails_open(self) -> None:
        """Test a file that cannot be materialized skips the check."""
        resolver = ConflictingDependencyResolver(
            [ManifestFile(name="../package-lock.json")],
            helper_command=ECHO_HELPER,
        )

        report = await resolver.check(LIB_A, "2.0.0")

        assert report.status is ConflictCheckStatus.SKIPPED_RESOLVER_FAILED

    @pytest.mark.slow
    @pytest.mark.asyncio
    async def test_timeout_fails_open(self) -> None:
        """Test a helper exceeding the timeout is treated as a failure."""
        resolver = ConflictingDependencyResolver(
            _files("package-lock.json"),
            helper_command=[sys.executable, "-c", "import time; time.sleep(30)"],
            timeout=0.5,
        )

        report = await resolver.check(LIB_A, "2.0.0")

        assert report.status is ConflictCheckStatus.SKIPPED_RESOLVER_FAILED


@pytest.mark.unit
def test_from_config() -> None:
    """Test the helper command and timeout come from configuration."""
    config = BumpwiseConfig(helper_command=["node", "helper.js"], resolver_timeout=5)

    resolver = ConflictingDependencyResolver.from_config(_files(), config)

    assert resolver.helper_command == ["node", "helper.js"]
    assert resolver.timeout == 5
