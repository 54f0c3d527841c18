"""Drive a work unit over every combination of a set of axes.

The driver owns an :class:`~evalmatrix.odometer.Odometer`, resolves index
vectors to concrete axis values and applies the failure-skip policy: once a
combination fails, every following combination that differs from it only in
axes more inner than the one whose change produced it is skipped, until an
advance touches that axis (or a more significant one) again.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Tuple, Union

from evalmatrix.exceptions import InvalidConfiguration, PreconditionError, WorkUnitFailure
from evalmatrix.models import (
    FAILED,
    SKIPPED,
    SUCCEEDED,
    Axis,
    CombinationRecord,
    Outcome,
    RunSummary,
)
from evalmatrix.odometer import Odometer

logger = logging.getLogger("evalmatrix.combiner")

WorkUnit = Callable[[int], Union[bool, Outcome]]


def invoke_work_unit(work_unit: WorkUnit, changed: int) -> Outcome:
    """Call ``work_unit`` and normalise whatever it signals into an Outcome.

    Args:
        work_unit: Callable receiving the last changed axis index.
        changed: Most significant axis changed by the advance that reached the
            combination about to run.

    Returns:
        The outcome returned by the work unit, or one built from its boolean
        result. Any exception becomes a failed outcome whose error keeps the
        original exception as ``__cause__``.
    """
    try:
        result = work_unit(changed)
    except Exception as exc:
        logger.exception("Work unit raised: %s", exc)
        failure = WorkUnitFailure(f"work unit raised {type(exc).__name__}: {exc}")
        failure.__cause__ = exc
        return Outcome.failed(failure)
    if isinstance(result, Outcome):
        return result
    if result:
        return Outcome.ok()
    return Outcome.failed()


class CombinationDriver:
    """Iterates over the Cartesian product of a list of axes.

    Usage::

        driver = CombinationDriver()
        driver.init(Axis("system", systems), Axis("algorithm", algorithms))
        summary = driver.run(lambda changed: run_trial(driver.values()))
    """

    def __init__(self, *axes: Axis):
        self._axes: Optional[Tuple[Axis, ...]] = None
        self._odometer: Optional[Odometer] = None
        self.summary: Optional[RunSummary] = None
        if axes:
            self.init(*axes)

    def init(self, *axes: Axis) -> None:
        """Configure the axes for the next run.

        Raises:
            InvalidConfiguration: For no axes or an axis without values.
        """
        for axis in axes:
            if axis.size <= 0:
                raise InvalidConfiguration(f"Option list must not be empty. Option: {axis.name}")
        # validates the cardinalities before any work starts
        Odometer([axis.size for axis in axes])
        self._axes = tuple(axes)
        self._odometer = None

    @property
    def axes(self) -> Tuple[Axis, ...]:
        if self._axes is None:
            raise PreconditionError("Call init method first!")
        return self._axes

    def sizes(self) -> Tuple[int, ...]:
        return tuple(axis.size for axis in self.axes)

    def current_indices(self) -> Tuple[int, ...]:
        if self._odometer is None:
            raise PreconditionError("no run in progress")
        return self._odometer.current_indices()

    def value(self, axis_index: int) -> Any:
        """Concrete value of ``axis_index`` in the current combination."""
        return self.axes[axis_index].values[self.current_indices()[axis_index]]

    def values(self) -> Dict[str, Any]:
        indices = self.current_indices()
        return {axis.name: axis.values[idx] for axis, idx in zip(self.axes, indices)}

    def describe_axes(self) -> str:
        return " ".join(f"{axis.name}({axis.size})" for axis in self.axes)

    def run(self, work_unit: WorkUnit) -> RunSummary:
        """Execute ``work_unit`` for every combination not pruned by a failure.

        The work unit receives the last changed axis index of the combination
        it is about to handle and reports success with ``True`` / an ok
        :class:`Outcome`. Failures never abort the run.

        Raises:
            PreconditionError: If :meth:`init` was not called.
        """
        if self._axes is None:
            raise PreconditionError("Call init method first!")
        odometer = Odometer(self.sizes())
        self._odometer = odometer
        summary = RunSummary(sizes=odometer.sizes())
        self.summary = summary
        logger.info(self.describe_axes())

        failure_mark: Optional[int] = None
        skipped_since_failure = 0
        while odometer.has_next():
            changed = odometer.advance()
            if changed is None:
                break
            indices = odometer.current_indices()
            if failure_mark is not None:
                if changed > failure_mark:
                    summary.records.append(CombinationRecord(indices, changed, SKIPPED))
                    skipped_since_failure += 1
                    continue
                failure_mark = None
                logger.info(
                    "Resuming at %s after skipping %d combination(s)",
                    odometer.format_status(),
                    skipped_since_failure,
                )
                skipped_since_failure = 0

            logger.info(odometer.format_progress())
            outcome = invoke_work_unit(work_unit, changed)
            if outcome.success:
                summary.records.append(CombinationRecord(indices, changed, SUCCEEDED))
            else:
                summary.records.append(CombinationRecord(indices, changed, FAILED))
                logger.warning("Combination %s failed: %s", list(indices), outcome.error)
                failure_mark = changed

        if skipped_since_failure:
            logger.info("Skipped %d trailing combination(s) after failure", skipped_since_failure)
        logger.info(
            "Finished %d combination(s): executed=%d succeeded=%d failed=%d skipped=%d",
            summary.total,
            summary.executed,
            summary.succeeded,
            summary.failed,
            summary.skipped,
        )
        return summary
