"""Conflicts command implementation for bumpwise.

Asks the lockfile helper which packages would block moving the request's
dependency to a given target version::

    $ bumpwise conflicts request.json --target 2.0.0
    $ bumpwise conflicts request.json --target 2.0.0 --format json
"""

from __future__ import annotations

import json
import click
import asyncio
from pathlib import Path

from bumpwise.context import pass_context, BumpwiseContext
from bumpwise.commands.request import load_request
from bumpwise.core import ConflictingDependencyResolver
from bumpwise.models import ConflictCheckStatus, ConflictReport
from bumpwise.utils import get_logger, print_success, print_table, print_warning

logger = get_logger("commands.conflicts")


@click.command()
@click.argument(
    "request",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--target",
    "-t",
    required=True,
    help="Version to check the dependency against.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def conflicts(
    ctx: BumpwiseContext,
    request: Path,
    target: str,
    format: str,
) -> None:
    """List packages whose requirements exclude the target version.

    A helper failure is not an error: it reports no conflicts with the
    status ``skipped_resolver_failed``.
    """
    update_request = load_request(request)
    resolver = ConflictingDependencyResolver.from_config(update_request.manifests, ctx.config)
    logger.info(
        "Checking %s@%s with %s helper",
        update_request.dependency.name,
        target,
        resolver.resolver_kind.label if resolver.resolver_kind else "no",
    )

    report = asyncio.run(resolver.check(update_request.dependency, target))

    if format == "json":
        click.echo(json.dumps(report.to_json(), indent=2))
    else:
        _display_report(update_request.dependency.name, target, report)


def _display_report(name: str, target: str, report: ConflictReport) -> None:
    if report.has_conflicts():
        print_table(
            [
                {
                    "Package": conflict.blocking_name,
                    "Version": conflict.blocking_version,
                    "Requires": conflict.requirement_string,
                }
                for conflict in report
            ],
            title=f"Conflicts for {name}@{target}",
        )
        print_warning(f"{len(report)} package(s) block {name}@{target}")
    elif report.status is ConflictCheckStatus.SKIPPED_RESOLVER_FAILED:
        print_warning("Conflict helper failed; no conflicts could be determined")
    elif report.status is ConflictCheckStatus.SKIPPED_NO_LOCKFILE:
        print_success("No lockfile present; nothing conflicts")
    else:
        print_success(f"No conflicts for {name}@{target}")
