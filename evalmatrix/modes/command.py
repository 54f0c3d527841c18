"""Command matrix evaluation.

Runs every configured command for every system, system iteration and
algorithm iteration, in that nesting order (systems outermost). Each attempt
is one subprocess started through :class:`~evalmatrix.process.ProcessRunner`
and one row in ``runs-<n>.csv``. A command failing on its first algorithm
iteration prunes its remaining iterations for that system iteration; a
failure on the first combination of a system prunes the whole system.
Failures in later algorithm iterations prune nothing.

The runner enforces the timeout; ``memory_gb`` only reaches the process
through the ``{memory_gb}`` placeholder, so a template has to pass it on
(e.g. as ``-Xmx{memory_gb}g``) for the limit to apply.

Command templates may use these placeholders::

    {system} {system_path} {system_iteration} {algorithm}
    {algorithm_iteration} {seed} {timeout_ms} {memory_gb} {overwrite}
    {output} {temp} {resources}
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from evalmatrix.aggregate import write_summary_csv
from evalmatrix.combiner import CombinationDriver
from evalmatrix.evaluator import Evaluator
from evalmatrix.exceptions import InvalidConfiguration, WorkUnitFailure
from evalmatrix.models import Axis, Outcome
from evalmatrix.process import CommandAlgorithm, ProcessRunner
from evalmatrix.results import read_max_csv_id
from evalmatrix.visualization import plot_outcome_grid

logger = logging.getLogger("evalmatrix.command")

RUNS_FILE = "runs"
RUNS_HEADER = (
    "ID",
    "System",
    "SystemIteration",
    "Algorithm",
    "AlgorithmIteration",
    "Success",
    "Timeout",
    "TimeMs",
    "Result",
)
AXIS_NAMES = ("system", "system_iteration", "algorithm", "algorithm_iteration")


class CommandEvaluator(Evaluator):
    identifier = "eval-command"

    def __init__(self, config):
        super().__init__(config)
        self.driver = CombinationDriver()
        self.runner = ProcessRunner(config.timeout_ms)
        self._next_id = 0

    def _first_free_id(self) -> int:
        if self.data_path is None:
            return 0
        ids = [read_max_csv_id(p) for p in self.data_path.rglob(f"{RUNS_FILE}-*.csv")]
        return max(ids, default=-1) + 1

    def placeholders(self) -> Dict[str, Any]:
        values = self.driver.values()
        seed = self.config.seed
        return {
            **values,
            "system_path": self.model_path / values["system"],
            "seed": "" if seed is None else seed,
            "timeout_ms": self.config.timeout_ms or "",
            "memory_gb": self.config.memory_gb,
            "overwrite": self.config.overwrite,
            "output": self.gen_path,
            "temp": self.temp_path,
            "resources": self.resource_path,
        }

    def run_evaluation(self) -> None:
        if not self.config.algorithms:
            raise InvalidConfiguration("No algorithms configured")
        if not self.system_names:
            raise InvalidConfiguration(f"No systems given and none found in {self.model_path}")

        self._next_id = self._first_free_id()
        csv_writer = self.add_csv_writer(RUNS_FILE, *RUNS_HEADER)
        self.driver.init(
            Axis("system", self.system_names),
            Axis("system_iteration", self.config.system_iterations),
            Axis("algorithm", list(self.config.algorithms)),
            Axis("algorithm_iteration", self.config.algorithm_iterations),
        )

        def run_combination(changed: int) -> Outcome:
            values = self.driver.values()
            if changed == 0:
                logger.info("System: %s", values["system"])
            name = values["algorithm"]
            algorithm = CommandAlgorithm(name, self.config.algorithms[name], self.placeholders())
            algorithm.iterations = values["algorithm_iteration"]
            result = self.runner.run(algorithm)
            csv_writer.add_line(
                self._next_id,
                values["system"],
                values["system_iteration"],
                name,
                values["algorithm_iteration"],
                result.success,
                result.timeout,
                result.time_ms,
                result.result,
            )
            csv_writer.flush()
            self._next_id += 1
            if result.success:
                return Outcome.ok()
            return Outcome.failed(WorkUnitFailure(f"{algorithm.name}: {result.error}"))

        summary = self.driver.run(run_combination)
        write_summary_csv(self.csv_path, RUNS_FILE)
        plot_outcome_grid(summary, AXIS_NAMES, self.gen_path / "outcomes.png")
