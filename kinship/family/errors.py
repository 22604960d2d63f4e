"""Exceptions raised by the kinship engine."""

from __future__ import annotations


class KinshipError(Exception):
    """Base class for engine errors."""


class ExclusivityViolation(KinshipError):
    """A proposed romantic edge would give someone a second romantic partner."""

    def __init__(self, reason: str, person_id: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.person_id = person_id


class InvalidRelationshipKind(KinshipError, ValueError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"Invalid relationship type: {kind}")
        self.kind = kind


class GraphCycleError(KinshipError):
    """The parent links of a snapshot loop back on themselves."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(f"Cycle detected in parent-child relationships: {cycle}")
        self.cycle = cycle
