"""Core data structures of an evaluation matrix.

This module defines:
    Axis              -- one named configuration dimension with its values.
    Outcome           -- explicit success/failure result of one work unit.
    CombinationRecord -- what happened to a single combination during a run.
    RunSummary        -- ordered records of a whole enumeration run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Tuple

from evalmatrix.exceptions import WorkUnitFailure

SUCCEEDED = "succeeded"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass(frozen=True)
class Axis:
    """Immutable configuration dimension.

    Attributes:
        name: Label used in diagnostics and result headers.
        values: Ordered concrete values; index ``i`` of the odometer maps to
            ``values[i]``.
    """

    name: str
    values: Tuple[Any, ...]

    def __post_init__(self) -> None:
        # Accept any sequence but keep the stored value list immutable.
        object.__setattr__(self, "values", tuple(self.values))

    @property
    def size(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class Outcome:
    """Result of one work-unit attempt.

    Fields:
        success: ``True`` when the combination succeeded.
        error: Failure description for unsuccessful attempts.
    """

    success: bool
    error: WorkUnitFailure | None = None

    @classmethod
    def ok(cls) -> "Outcome":
        return cls(success=True)

    @classmethod
    def failed(cls, error: WorkUnitFailure | None = None) -> "Outcome":
        return cls(success=False, error=error or WorkUnitFailure("work unit reported failure"))


@dataclass(frozen=True)
class CombinationRecord:
    """Single combination visited by the driver.

    Fields:
        indices: Index vector of the combination.
        changed: Most significant axis touched by the advance reaching it.
        status: One of ``succeeded``, ``failed`` or ``skipped``.
    """

    indices: Tuple[int, ...]
    changed: int
    status: str


@dataclass
class RunSummary:
    sizes: Tuple[int, ...]
    records: list[CombinationRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        total = 1
        for size in self.sizes:
            total *= size
        return total

    def _count(self, status: str) -> int:
        return sum(1 for r in self.records if r.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def executed(self) -> int:
        return self.succeeded + self.failed

    def executed_indices(self) -> list[Tuple[int, ...]]:
        return [r.indices for r in self.records if r.status != SKIPPED]
