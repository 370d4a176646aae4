"""Check command implementation for bumpwise.

Loads a request document and reports whether its dependency can be
updated, and to what.

The command drives one :class:`~bumpwise.core.UpdateChecker`:

1. **VersionSelector** picks the latest or security-fix target.
2. **PropertyUpdatePlanner** proves shared properties can move together.
3. **ConflictingDependencyResolver** checks the lockfile graph.
4. **RequirementsRewriter** shows the requirements after the update.

Typical usage::

    $ bumpwise check request.json
    $ bumpwise check request.json --format json > verdict.json
    $ bumpwise check request.json --no-conflicts
"""

from __future__ import annotations

import json
import click
import asyncio
import dataclasses
from pathlib import Path
from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional, Sequence

from bumpwise.config import BumpwiseConfig
from bumpwise.context import pass_context, BumpwiseContext
from bumpwise.commands.request import UpdateRequest, load_request
from bumpwise.core import (
    JSONRegistrySource,
    ResolutionContext,
    StaticVersionSource,
    UpdateChecker,
    VersionSource,
)
from bumpwise.models import Requirement
from bumpwise.utils import (
    HTTPClient,
    colorize_update_type,
    get_console,
    get_logger,
    get_update_type,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")


@click.command()
@click.argument(
    "request",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.option(
    "--no-conflicts",
    is_flag=True,
    help="Skip the transitive conflict check.",
)
@pass_context
def check(
    ctx: BumpwiseContext,
    request: Path,
    format: str,
    no_conflicts: bool,
) -> None:
    """Decide whether the request's dependency can be updated.

    Prints the verdict, the latest, resolvable and security-fix versions,
    and the requirements as they would be after the update.

    Args:
        ctx: Bumpwise context with configuration and verbosity settings.
        request: Path to the request document.
        format: Output format (``table`` or ``json``).
        no_conflicts: Skip the lockfile conflict check.
    """
    config = ctx.config
    if no_conflicts:
        config = dataclasses.replace(config, check_conflicts=False)

    report = asyncio.run(_check_async(load_request(request), config))

    if format == "json":
        click.echo(json.dumps(report, indent=2))
    else:
        _display_report(report)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _check_async(request: UpdateRequest, config: BumpwiseConfig) -> Dict[str, Any]:
    """Run every check for the request and collect a JSON-ready report."""
    async with AsyncExitStack() as stack:
        source: VersionSource
        if request.versions is not None:
            source = StaticVersionSource(request.versions)
        else:
            http = await stack.enter_async_context(HTTPClient())
            source = JSONRegistrySource(http, config.registry_url)

        context = ResolutionContext(
            request.manifests,
            request.parser,
            source,
            advisories=request.advisories,
            ignored_versions=request.ignored_versions,
            config=config,
        )
        checker = UpdateChecker(request.dependency, context)

        verdict = await checker.verdict()
        latest = await checker.latest_version()
        resolvable = await checker.latest_resolvable_version()
        security_fix = (
            await checker.lowest_resolvable_security_fix_version()
            if checker.vulnerable()
            else None
        )
        requirements = (
            await checker.updated_requirements(verdict.target_version)
            if verdict.can_update
            else list(request.dependency.requirements)
        )
        updated = (
            await checker.updated_dependencies_after_full_unlock()
            if verdict.can_update
            else []
        )
        edits = await checker.property_edits(verdict.target_version) if verdict.can_update else []

    return {
        "dependency": request.dependency.name,
        "directory": request.dependency.directory,
        "current_version": request.dependency.version,
        "vulnerable": checker.vulnerable(),
        "latest_version": latest,
        "latest_resolvable_version": resolvable,
        "lowest_security_fix_version": security_fix,
        "verdict": verdict.to_json(),
        "requirements": _requirement_rows(request.dependency.requirements, requirements),
        "updated_dependencies": [dep.to_json() for dep in updated],
        "property_edits": [edit.to_json() for edit in edits],
    }


def _requirement_rows(
    before: Sequence[Requirement],
    after: List[Requirement],
) -> List[Dict[str, Optional[str]]]:
    return [
        {
            "file": old.file,
            "property": old.property_name,
            "before": old.requirement,
            "after": new.requirement,
        }
        for old, new in zip(before, after)
    ]


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_report(report: Dict[str, Any]) -> None:
    """Render the report as Rich tables followed by a status line."""
    verdict = report["verdict"]
    target = verdict["target_version"]

    print_table(
        [
            {"Field": "Dependency", "Value": f"{report['dependency']} ({report['directory']})"},
            {"Field": "Current", "Value": report["current_version"]},
            {"Field": "Latest", "Value": report["latest_version"]},
            {"Field": "Latest resolvable", "Value": report["latest_resolvable_version"]},
            {"Field": "Security fix", "Value": report["lowest_security_fix_version"]},
            {"Field": "Vulnerable", "Value": "yes" if report["vulnerable"] else "no"},
            {"Field": "Target", "Value": target},
            {
                "Field": "Update type",
                "Value": colorize_update_type(
                    get_update_type(report["current_version"], target)
                )
                if target
                else None,
            },
            {"Field": "Reason", "Value": verdict["reason"]},
            {"Field": "Conflict check", "Value": verdict["conflict_status"]},
        ],
        title="Update Verdict",
    )

    if verdict["conflicts"]:
        print_table(
            [
                {
                    "Package": c["name"],
                    "Version": c["version"],
                    "Requires": c["requirement"],
                }
                for c in verdict["conflicts"]
            ],
            title="Conflicting Dependencies",
        )

    changed = [row for row in report["requirements"] if row["before"] != row["after"]]
    if changed:
        print_table(
            [
                {
                    "File": row["file"],
                    "Property": row["property"],
                    "Before": row["before"],
                    "After": row["after"],
                }
                for row in changed
            ],
            title="Updated Requirements",
        )

    if len(report["updated_dependencies"]) > 1:
        get_console().print(
            "[dim]Moves together: "
            + ", ".join(dep["name"] for dep in report["updated_dependencies"])
            + "[/dim]"
        )

    if verdict["can_update"]:
        print_success(f"{report['dependency']} can be updated to {target}")
    elif verdict["reason"] == "up_to_date":
        print_success(f"{report['dependency']} is up to date")
    else:
        print_warning(f"{report['dependency']} cannot be updated ({verdict['reason']})")
