"""Experiment-matrix execution engine.

Exports the odometer, the combination driver and the data structures they
exchange.
"""

from evalmatrix.combiner import CombinationDriver, invoke_work_unit  # noqa: F401
from evalmatrix.exceptions import (  # noqa: F401
    EvaluationError,
    InvalidConfiguration,
    PrecompletionError,
    PreconditionError,
    WorkUnitFailure,
)
from evalmatrix.models import Axis, CombinationRecord, Outcome, RunSummary  # noqa: F401
from evalmatrix.odometer import Odometer  # noqa: F401

__all__ = [
    "Axis",
    "CombinationDriver",
    "CombinationRecord",
    "EvaluationError",
    "InvalidConfiguration",
    "Odometer",
    "Outcome",
    "PrecompletionError",
    "PreconditionError",
    "RunSummary",
    "WorkUnitFailure",
    "invoke_work_unit",
]
