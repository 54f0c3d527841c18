"""Error kinds raised by the evaluation engine.

Only configuration and precondition errors ever escape the core. A failing
work unit is carried as a :class:`WorkUnitFailure` inside a failed
:class:`~evalmatrix.models.Outcome` and never propagated.
"""

from __future__ import annotations


class EvaluationError(Exception):
    """Base class for all evalmatrix errors."""


class InvalidConfiguration(EvaluationError, ValueError):
    """Axis cardinalities or evaluation options are malformed."""


class PreconditionError(EvaluationError, RuntimeError):
    """An operation was invoked before the state it needs was set up."""


class PrecompletionError(EvaluationError, RuntimeError):
    """An exhausted odometer was asked to advance again."""


class WorkUnitFailure(EvaluationError):
    """A work unit returned ``False`` or raised.

    Instances are attached to failed outcomes; when the work unit raised, the
    original exception is kept as ``__cause__``.
    """
