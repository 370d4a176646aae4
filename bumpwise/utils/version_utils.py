"""
Version and constraint utilities for bumpwise.

Versions are PEP 440 versions (``packaging.version``). Constraints accept
either PEP 440 specifier sets (``>=1.0,<3.0``) or the interval notation
used by hierarchical build systems and security advisories
(``[1.0,2.0)``, ``(,1.0]``, ``[1.2.3]``). A bare version such as ``1.2.3``
is a *soft* requirement: it names a preferred version without restricting
which versions may be chosen. Ignore lists and advisory ranges parse with
``soft_bare=False``, where a bare version pins exactly that version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version, parse

VersionLike = Union[str, Version]

_INTERVAL_PATTERN = re.compile(
    r"""
    (?P<open>[\[(])\s*
    (?P<lower>[^,\[\]()]*?)\s*
    (?:,\s*(?P<upper>[^,\[\]()]*?)\s*)?
    (?P<close>[\])])
    """,
    re.VERBOSE,
)


class InvalidConstraint(ValueError):
    """Raised when a constraint string matches neither supported grammar."""


# ---------------------------------------------------------------------------
# Version parsing
# ---------------------------------------------------------------------------


def parse_version(value: Optional[VersionLike]) -> Optional[Version]:
    """Parse *value* into a :class:`Version`, or ``None`` if it is not one.

    Examples:
        >>> parse_version("2.0")
        <Version('2.0')>
        >>> parse_version("latest") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, Version):
        return value
    try:
        parsed = parse(value.strip())
    except InvalidVersion:
        return None
    return parsed if isinstance(parsed, Version) else None


def is_version(value: Optional[VersionLike]) -> bool:
    """Return True if *value* is a recognised version string."""
    return parse_version(value) is not None


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Interval:
    """One ``[lower, upper)``-style interval; ``None`` bounds are open-ended."""

    lower: Optional[Version]
    lower_inclusive: bool
    upper: Optional[Version]
    upper_inclusive: bool

    def contains(self, version: Version) -> bool:
        if self.lower is not None:
            if version < self.lower or (version == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if version > self.upper or (version == self.upper and not self.upper_inclusive):
                return False
        return True

    @property
    def is_exact(self) -> bool:
        return (
            self.lower is not None
            and self.lower == self.upper
            and self.lower_inclusive
            and self.upper_inclusive
        )


class Constraint:
    """A parsed version constraint.

    Args:
        raw: Constraint text. Empty text accepts every version.
        soft_bare: Read a bare version as a soft requirement. With
            ``False`` a bare version pins exactly that version, which is
            how ignore lists and advisory ranges use it.

    Raises:
        InvalidConstraint: *raw* matches neither grammar.

    Example::

        >>> Constraint("[1.0,2.0)").contains("1.5")
        True
        >>> Constraint(">=1.0,<3.0").contains("3.0")
        False
        >>> Constraint("1.2.3").is_soft
        True
        >>> Constraint("1.2.3", soft_bare=False).contains("1.2.4")
        False
    """

    __slots__ = ("raw", "intervals", "specifiers", "soft_version")

    def __init__(self, raw: Optional[str], *, soft_bare: bool = True) -> None:
        self.raw: str = (raw or "").strip()
        self.intervals: Optional[List[Interval]] = None
        self.specifiers: Optional[SpecifierSet] = None
        self.soft_version: Optional[Version] = None

        if not self.raw:
            self.specifiers = SpecifierSet("")
        elif self.raw[0] in "[(":
            self.intervals = _parse_intervals(self.raw)
        elif parse_version(self.raw) is not None:
            version = parse_version(self.raw)
            if soft_bare:
                self.soft_version = version
            else:
                self.intervals = [Interval(version, True, version, True)]
        else:
            try:
                self.specifiers = SpecifierSet(self.raw)
            except InvalidSpecifier as exc:
                raise InvalidConstraint(f"Unrecognised constraint: {self.raw!r}") from exc

    @property
    def is_soft(self) -> bool:
        """True for a bare version, which does not restrict candidates."""
        return self.soft_version is not None

    @property
    def uses_intervals(self) -> bool:
        return self.intervals is not None

    def contains(self, version: VersionLike) -> bool:
        """Return True if *version* satisfies this constraint.

        Unparseable versions never satisfy a constraint.
        """
        parsed = parse_version(version)
        if parsed is None:
            return False
        if self.soft_version is not None:
            return True
        if self.intervals is not None:
            return any(interval.contains(parsed) for interval in self.intervals)
        assert self.specifiers is not None
        return self.specifiers.contains(parsed, prereleases=True)

    def __contains__(self, version: VersionLike) -> bool:
        return self.contains(version)

    def __repr__(self) -> str:
        return f"Constraint({self.raw!r})"

    def __str__(self) -> str:
        return self.raw


def _parse_intervals(raw: str) -> List[Interval]:
    intervals: List[Interval] = []
    position = 0

    while position < len(raw):
        # Skip separators between intervals
        while position < len(raw) and raw[position] in ", \t":
            position += 1
        if position >= len(raw):
            break

        match = _INTERVAL_PATTERN.match(raw, position)
        if match is None:
            raise InvalidConstraint(f"Unrecognised interval syntax: {raw!r}")
        intervals.append(_build_interval(match, raw))
        position = match.end()

    if not intervals:
        raise InvalidConstraint(f"Empty interval constraint: {raw!r}")
    return intervals


def _build_interval(match: "re.Match[str]", raw: str) -> Interval:
    lower_text = match.group("lower")
    upper_text = match.group("upper")
    has_comma = upper_text is not None

    lower = _bound(lower_text, raw)
    if not has_comma:
        # "[1.2.3]" pins exactly one version
        if lower is None or match.group("open") != "[" or match.group("close") != "]":
            raise InvalidConstraint(f"Invalid exact interval: {raw!r}")
        return Interval(lower, True, lower, True)

    upper = _bound(upper_text, raw)
    return Interval(
        lower=lower,
        lower_inclusive=match.group("open") == "[",
        upper=upper,
        upper_inclusive=match.group("close") == "]",
    )


def _bound(text: Optional[str], raw: str) -> Optional[Version]:
    if not text:
        return None
    parsed = parse_version(text)
    if parsed is None:
        raise InvalidConstraint(f"Invalid interval bound {text!r} in {raw!r}")
    return parsed


def satisfies_all(version: VersionLike, constraints: List[Constraint]) -> bool:
    """Return True if *version* satisfies every constraint in the list."""
    return all(constraint.contains(version) for constraint in constraints)


def matches_any(version: VersionLike, constraints: List[Constraint]) -> bool:
    """Return True if *version* satisfies at least one constraint."""
    return any(constraint.contains(version) for constraint in constraints)


# ---------------------------------------------------------------------------
# Update classification
# ---------------------------------------------------------------------------


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
) -> str:
    """Classify the change between two versions.

    Returns:
        One of ``"new"``, ``"same"``, ``"downgrade"``, ``"major"``,
        ``"minor"``, ``"patch"``, ``"update"`` or ``"unknown"``.

    Examples:
        >>> get_update_type("1.0.0", "2.0.0")
        'major'
        >>> get_update_type(None, "1.0.0")
        'new'
    """
    if current_version is None:
        return "new" if target_version is not None else "unknown"

    current = parse_version(current_version)
    target = parse_version(target_version)
    if current is None or target is None:
        return "unknown"

    if target == current:
        return "same"
    if target < current:
        return "downgrade"

    current_release = _normalize_release(current)
    target_release = _normalize_release(target)
    for label, old, new in zip(("major", "minor", "patch"), current_release, target_release):
        if old != new:
            return label

    # Pre-release → release or metadata-only changes
    return "update"


def _normalize_release(version: Version) -> Tuple[int, int, int]:
    """Normalize a version's release segment to (major, minor, patch)."""
    release = version.release + (0, 0, 0)
    return release[0], release[1], release[2]
