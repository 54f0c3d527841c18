"""Mixed-radix counter over the axes of an evaluation matrix.

Combinations are produced in strict lexicographic order of the index vector
with axis 0 as the most significant (outermost) position and axis ``N-1`` as
the fastest-varying one. Every advance reports how far its carry propagated,
which is what the failure-skip policy in :mod:`evalmatrix.combiner` keys on.
"""

from __future__ import annotations

import operator
from typing import Optional, Sequence, Tuple

from evalmatrix.exceptions import InvalidConfiguration, PrecompletionError, PreconditionError


class Odometer:
    """Stateful counter created once per enumeration run.

    Args:
        sizes: Cardinality of every axis, outermost first. Must be non-empty
            and contain positive integers only.

    Raises:
        InvalidConfiguration: For zero axes or a non-positive axis size.
    """

    def __init__(self, sizes: Sequence[int]):
        sizes = tuple(sizes)
        if not sizes:
            raise InvalidConfiguration("at least one axis is required")
        checked = []
        for i, size in enumerate(sizes):
            if isinstance(size, bool):
                raise InvalidConfiguration(f"axis {i}: size must be an integer, got {size!r}")
            try:
                size = operator.index(size)
            except TypeError:
                raise InvalidConfiguration(f"axis {i}: size must be an integer, got {size!r}") from None
            if size <= 0:
                raise InvalidConfiguration(f"axis {i}: size must be positive, got {size}")
            checked.append(size)
        self._sizes: Tuple[int, ...] = tuple(checked)
        self._indices = [0] * len(sizes)
        self._started = False
        self._exhausted = False
        self._last_changed: Optional[int] = None
        self._position = 0

    def has_next(self) -> bool:
        """True until an advance has wrapped past the last combination."""
        return not self._exhausted

    def advance(self) -> Optional[int]:
        """Move to the next combination.

        Returns:
            The smallest axis index touched by the carry chain, ``0`` for the
            very first combination, or ``None`` once the counter wrapped past
            axis 0 (exhausted).

        Raises:
            PrecompletionError: If the counter is already exhausted.
        """
        if self._exhausted:
            raise PrecompletionError("odometer is exhausted; no combinations left")
        if not self._started:
            self._started = True
            self._last_changed = 0
            self._position = 1
            return 0
        for i in range(len(self._indices) - 1, -1, -1):
            self._indices[i] += 1
            if self._indices[i] < self._sizes[i]:
                self._last_changed = i
                self._position += 1
                return i
            self._indices[i] = 0
        # carry went past axis 0
        self._exhausted = True
        self._last_changed = None
        return None

    def current_indices(self) -> Tuple[int, ...]:
        if not self._started:
            raise PreconditionError("no combination reached yet; call advance() first")
        if self._exhausted:
            raise PreconditionError("odometer is exhausted; there is no current combination")
        return tuple(self._indices)

    def sizes(self) -> Tuple[int, ...]:
        return self._sizes

    @property
    def last_changed(self) -> Optional[int]:
        return self._last_changed

    @property
    def total(self) -> int:
        total = 1
        for size in self._sizes:
            total *= size
        return total

    @property
    def position(self) -> int:
        """1-based ordinal of the current combination (0 before start)."""
        return self._position

    def format_progress(self) -> str:
        """Progress line, e.g. ``(4/6) [2/2, 1/3]``."""
        cells = ", ".join(f"{idx + 1}/{size}" for idx, size in zip(self._indices, self._sizes))
        return f"({self._position}/{self.total}) [{cells}]"

    def format_status(self) -> str:
        percent = 100.0 * self._position / self.total
        return f"{self.format_progress()} {percent:.1f}%"

    def __repr__(self) -> str:
        return (
            f"Odometer(sizes={list(self._sizes)}, indices={self._indices}, "
            f"started={self._started}, exhausted={self._exhausted})"
        )
