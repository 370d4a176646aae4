"""
Transitive conflict models for bumpwise.

A :class:`ConflictRecord` names another package whose own requirement on
the dependency being updated would be violated by the target version.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional


@dataclass(frozen=True)
class ConflictRecord:
    """A package blocking the update of another.

    Attributes:
        blocking_name: Package that declares the violated requirement.
        blocking_version: Resolved version of the blocking package.
        requirement_string: Constraint it places on the updated dependency.
    """

    blocking_name: str
    blocking_version: Optional[str]
    requirement_string: str

    def to_display_string(self) -> str:
        """Return a human-readable description of the conflict."""
        source = (
            f"{self.blocking_name}@{self.blocking_version}"
            if self.blocking_version
            else self.blocking_name
        )
        return f"{source} requires {self.requirement_string}"

    def to_json(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.blocking_name,
            "version": self.blocking_version,
            "requirement": self.requirement_string,
        }

    @classmethod
    def from_helper_payload(cls, payload: Mapping[str, Any]) -> "ConflictRecord":
        """Build a record from a native helper's ``{name, version, requirement}``."""
        return cls(
            blocking_name=str(payload["name"]),
            blocking_version=(
                str(payload["version"]) if payload.get("version") is not None else None
            ),
            requirement_string=str(payload.get("requirement") or ""),
        )

    def __str__(self) -> str:
        return self.to_display_string()


class ConflictCheckStatus(Enum):
    """How a conflict check ended."""

    COMPLETED = "completed"  # A helper ran and reported its findings
    SKIPPED_NO_LOCKFILE = "skipped_no_lockfile"  # Nothing to conflict with
    SKIPPED_RESOLVER_FAILED = "skipped_resolver_failed"  # Helper crashed or timed out


@dataclass
class ConflictReport:
    """Conflicts found for one target version, plus how they were found.

    A failed helper yields no conflicts (fail-open), but the status keeps
    "skipped" distinguishable from "ran and found none".
    """

    conflicts: List[ConflictRecord] = field(default_factory=list)
    status: ConflictCheckStatus = ConflictCheckStatus.COMPLETED

    @property
    def checked(self) -> bool:
        return self.status is ConflictCheckStatus.COMPLETED

    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def to_json(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "conflicts": [conflict.to_json() for conflict in self.conflicts],
        }

    def __len__(self) -> int:
        return len(self.conflicts)

    def __iter__(self) -> Iterator[ConflictRecord]:
        return iter(self.conflicts)
