"""Requirement rewriting for bumpwise.

Produces the requirements a dependency has after moving to a new version.
A requirement bound to a property being updated takes the new value, and
the property's declaration becomes the single edit point no matter how
many requirements reference it. Any other requirement has its constraint
string rewritten by a pluggable transform; the default one keeps whatever
is not the version number itself (operators, brackets, other bounds).

Rewriting is idempotent: applying the same version twice gives the same
result as applying it once.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional, Sequence

from packaging.specifiers import InvalidSpecifier, Specifier
from packaging.version import Version

from bumpwise.models.dependency import Requirement
from bumpwise.models.manifest import PropertyEdit
from bumpwise.utils.logger import get_logger
from bumpwise.utils.version_utils import (
    Constraint,
    Interval,
    InvalidConstraint,
    parse_version,
)

logger = get_logger("requirements_rewriter")

__all__ = ["RequirementsRewriter", "rewrite_constraint"]

ConstraintTransform = Callable[[Optional[str], str], Optional[str]]

_SEPARATOR = re.compile(r"\s*,\s*")


# ---------------------------------------------------------------------------
# Default constraint transform
# ---------------------------------------------------------------------------


def rewrite_constraint(raw: Optional[str], new_version: str) -> Optional[str]:
    """Rewrite one constraint string so that it admits *new_version*.

    - A missing or empty constraint stays as it is.
    - Pins (``==1.2``, ``[1.2]``, bare ``1.2``) move to the new version.
    - Clauses and intervals that already admit the version are kept.
    - Unsatisfied bounds are moved just far enough to admit it.

    Unparseable constraints are returned unchanged.

    Examples:
        >>> rewrite_constraint("1.2.3", "1.4.0")
        '1.4.0'
        >>> rewrite_constraint(">=1.0, <2.0", "2.1")
        '>=1.0, <2.2'
        >>> rewrite_constraint("[1.0,2.0)", "2.5")
        '[1.0,2.5]'
    """
    if raw is None or not raw.strip():
        return raw

    target = parse_version(new_version)
    if target is None:
        return raw

    try:
        constraint = Constraint(raw)
    except InvalidConstraint:
        logger.debug("Leaving unparseable constraint %r untouched", raw)
        return raw

    if constraint.is_soft:
        return new_version
    if constraint.uses_intervals:
        return _rewrite_intervals(raw, constraint.intervals or [], target, new_version)
    return _rewrite_specifiers(raw, target, new_version)


def _rewrite_specifiers(raw: str, target: Version, new_version: str) -> str:
    separator = ", " if ", " in raw else ","
    clauses: List[str] = []

    for text in _SEPARATOR.split(raw.strip()):
        if not text:
            continue
        try:
            spec = Specifier(text)
        except InvalidSpecifier:
            clauses.append(text)
            continue
        rewritten = _rewrite_clause(spec, target, new_version)
        if rewritten is not None:
            clauses.append(rewritten)

    return separator.join(clauses)


def _rewrite_clause(spec: Specifier, target: Version, new_version: str) -> Optional[str]:
    operator = spec.operator
    if operator in ("==", "==="):
        return f"{operator}{new_version}"
    if spec.contains(target, prereleases=True):
        return str(spec)
    if operator == "!=":
        return None
    if operator == "~=":
        precision = len(Version(spec.version).release)
        return f"~={_truncate(target, precision)}"
    if operator in (">=", ">"):
        return f">={new_version}"
    if operator == "<=":
        return f"<={new_version}"
    # "<": next release at the bound's precision keeps the bound's shape
    precision = len(Version(spec.version).release)
    return f"<{_next_release(target, precision)}"


def _truncate(version: Version, precision: int) -> str:
    release = (version.release + (0,) * precision)[:precision]
    return ".".join(str(part) for part in release)


def _next_release(version: Version, precision: int) -> str:
    release = list((version.release + (0,) * precision)[:precision])
    release[-1] += 1
    return ".".join(str(part) for part in release)


def _rewrite_intervals(
    raw: str,
    intervals: Sequence[Interval],
    target: Version,
    new_version: str,
) -> str:
    if len(intervals) == 1 and intervals[0].is_exact:
        return f"[{new_version}]"
    if any(interval.contains(target) for interval in intervals):
        return raw

    # Stretch the highest interval to reach the target
    rendered = [_render_interval(interval) for interval in intervals]
    highest = intervals[-1]
    if highest.lower is not None and target < highest.lower:
        rendered[-1] = _render_interval(
            Interval(target, True, highest.upper, highest.upper_inclusive)
        )
    else:
        rendered[-1] = _render_interval(
            Interval(highest.lower, highest.lower_inclusive, target, True)
        )
    return ",".join(rendered)


def _render_interval(interval: Interval) -> str:
    if interval.is_exact:
        return f"[{interval.lower}]"
    lower = str(interval.lower) if interval.lower is not None else ""
    upper = str(interval.upper) if interval.upper is not None else ""
    opening = "[" if interval.lower_inclusive and interval.lower is not None else "("
    closing = "]" if interval.upper_inclusive and interval.upper is not None else ")"
    return f"{opening}{lower},{upper}{closing}"


# ---------------------------------------------------------------------------
# Rewriter
# ---------------------------------------------------------------------------


class RequirementsRewriter:
    """Compute updated requirements for a chosen version.

    Args:
        rewrite: Constraint transform for requirements not bound to an
            updated property. Defaults to :func:`rewrite_constraint`.
    """

    def __init__(self, rewrite: ConstraintTransform = rewrite_constraint) -> None:
        self._rewrite = rewrite

    def rewrite(
        self,
        requirements: Sequence[Requirement],
        new_version: Optional[str],
        new_source_url: Optional[str] = None,
        properties_to_update: Iterable[str] = (),
    ) -> List[Requirement]:
        """Return new requirement values; the inputs are left untouched.

        Args:
            requirements: Current requirements of the dependency.
            new_version: Chosen version; ``None`` leaves everything as is.
            new_source_url: Registry the new version comes from.
            properties_to_update: Names of properties whose declared value
                changes to *new_version*.

        Returns:
            Requirements in the same order as *requirements*.
        """
        if new_version is None:
            return list(requirements)

        properties = set(properties_to_update)
        updated: List[Requirement] = []

        for requirement in requirements:
            if requirement.is_property_bound:
                if requirement.property_name not in properties:
                    # Its property keeps its value; nothing to edit here
                    updated.append(requirement)
                    continue
                new_requirement = new_version
            else:
                new_requirement = self._rewrite(requirement.requirement, new_version)

            updated.append(
                requirement.with_changes(
                    requirement=new_requirement,
                    source_url=new_source_url or requirement.source_url,
                )
            )

        return updated

    def property_edits(
        self,
        requirements: Sequence[Requirement],
        new_version: Optional[str],
        properties_to_update: Iterable[str],
    ) -> List[PropertyEdit]:
        """One edit per distinct property declaration being updated."""
        if new_version is None:
            return []

        properties = set(properties_to_update)
        edits: List[PropertyEdit] = []
        seen = set()

        for requirement in requirements:
            if requirement.property_name not in properties or requirement.binding is None:
                continue
            key = requirement.binding.key
            if key in seen:
                continue
            seen.add(key)
            edits.append(
                PropertyEdit(
                    property_name=requirement.binding.property_name,
                    property_source=requirement.binding.property_source,
                    new_value=new_version,
                )
            )

        return edits
