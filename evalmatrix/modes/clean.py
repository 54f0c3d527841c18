from __future__ import annotations

import logging

from evalmatrix.evaluator import CURRENT_MARKER, Evaluator

logger = logging.getLogger("evalmatrix.clean")


class OutputCleaner(Evaluator):
    """Resets the current output folder so the next run starts a new one.

    Existing results are left untouched; only the ``.current`` marker is
    removed.
    """

    identifier = "eval-clean"

    def run(self) -> bool:
        try:
            self.run_evaluation()
            return True
        except OSError:
            logger.exception("Could not reset current output path")
            return False

    def run_evaluation(self) -> None:
        (self.output_root_path / CURRENT_MARKER).unlink(missing_ok=True)
        logger.info("Reset current output path.")
