"""Lifecycle shared by all evaluations.

Output layout below the configured output root::

    <output>/.current                 name of the current output folder
    <output>/<marker>/data/data-<ts>/  CSV results + config.yaml snapshot
    <output>/<marker>/gen/             generated artefacts
    <output>/<marker>/temp/            scratch space, deleted after the run

Consecutive runs share ``<marker>`` until the marker is reset (see
:class:`~evalmatrix.modes.clean.OutputCleaner`), each run getting its own
timestamped data folder.
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import yaml

from evalmatrix.config import EvaluationConfig
from evalmatrix.exceptions import PreconditionError
from evalmatrix.results import CSVFile, open_csv_writer

DATE_FORMAT = "%Y-%m-%d_%H-%M-%S"
CURRENT_MARKER = ".current"

logger = logging.getLogger("evalmatrix.evaluator")


def timestamp() -> str:
    return datetime.now().strftime(DATE_FORMAT)


class Evaluator(ABC):
    """Base class of an evaluation.

    Subclasses implement :meth:`run_evaluation`; :meth:`run` prepares the
    directories, records the options and always cleans up afterwards.
    """

    identifier = "evaluation"

    def __init__(self, config: EvaluationConfig):
        self.config = config
        self.output_root_path: Path = config.output
        self.model_path: Path = config.models
        self.resource_path: Path = config.resources
        self.output_path: Optional[Path] = None
        self.data_path: Optional[Path] = None
        self.csv_path: Optional[Path] = None
        self.gen_path: Optional[Path] = None
        self.temp_path: Optional[Path] = None
        self.system_names: List[str] = []

    @abstractmethod
    def run_evaluation(self) -> None: ...

    def run(self) -> bool:
        """Run the evaluation; returns ``False`` if it ended with an error."""
        try:
            self.init()
            self.update_sub_paths()
            logger.info("Running %s", self.identifier)
            self.log_options()
            self.run_evaluation()
            return True
        except Exception:
            logger.exception("Evaluation %s failed", self.identifier)
            return False
        finally:
            self.dispose()

    def init(self) -> None:
        if self.model_path.is_dir():
            available = sorted(p.name for p in self.model_path.iterdir() if not p.name.startswith("."))
        else:
            available = []
        if self.config.systems:
            missing = [s for s in self.config.systems if available and s not in available]
            if missing:
                logger.warning("Systems not found in %s: %s", self.model_path, ", ".join(missing))
            self.system_names = list(self.config.systems)
        else:
            self.system_names = available

    def read_current_output_marker(self) -> str:
        """Return the current output folder name, creating the marker if absent."""
        marker_file = self.output_root_path / CURRENT_MARKER
        marker: Optional[str] = None
        if marker_file.is_file():
            lines = marker_file.read_text(encoding="utf-8").splitlines()
            if lines and lines[0].strip():
                marker = lines[0].strip()
        self.output_root_path.mkdir(parents=True, exist_ok=True)
        if marker is None:
            marker = timestamp()
            marker_file.write_text(marker, encoding="utf-8")
        return marker

    def init_sub_paths(self) -> None:
        self.output_path = self.output_root_path / self.read_current_output_marker()
        self.data_path = self.output_path / "data"
        self.csv_path = self.data_path / f"data-{timestamp()}"
        self.temp_path = self.output_path / "temp"
        self.gen_path = self.output_path / "gen"

    def update_sub_paths(self) -> None:
        self.init_sub_paths()
        for path in (self.output_path, self.data_path, self.csv_path, self.gen_path, self.temp_path):
            if path is not None:
                try:
                    path.mkdir(parents=True, exist_ok=True)
                except OSError:
                    logger.error("Could not create output directory %s", path)
                    raise

    def log_options(self) -> None:
        for name, value in self.config.to_mapping().items():
            suffix = " (default)" if self.config.is_default(name) else ""
            logger.info("\t%-20s: %s%s", name, value, suffix)
        if self.csv_path is not None:
            with open(self.csv_path / "config.yaml", "w", encoding="utf-8") as f:
                yaml.safe_dump(self.config.to_mapping(), f, sort_keys=False)

    def add_csv_writer(self, file_name: str, *header: str) -> CSVFile:
        if self.csv_path is None:
            raise PreconditionError("output paths are not initialised")
        return open_csv_writer(self.csv_path, file_name, header)

    def dispose(self) -> None:
        if self.temp_path is not None and self.temp_path.exists():
            try:
                shutil.rmtree(self.temp_path)
            except OSError as e:
                logger.warning("Could not delete temp folder %s: %s", self.temp_path, e)
