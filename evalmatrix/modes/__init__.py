"""Ready-made evaluations selectable from the command line."""

from evalmatrix.modes.clean import OutputCleaner
from evalmatrix.modes.command import CommandEvaluator

MODES = {
    "run": CommandEvaluator,
    "clean": OutputCleaner,
}

__all__ = ["CommandEvaluator", "OutputCleaner", "MODES"]
