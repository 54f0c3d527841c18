"""External process execution for a single combination.

An :class:`Algorithm` knows how to build its command line and how to read
the output of the process it starts; :class:`ProcessRunner` launches it with
a timeout and turns everything that can go wrong into an unsuccessful
:class:`ProcessResult` instead of an exception.
"""

from __future__ import annotations

import logging
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

logger = logging.getLogger("evalmatrix.process")


class Algorithm(ABC):
    """Base class of everything the runner can execute."""

    def __init__(self) -> None:
        self.iterations = -1
        self.command_elements: List[str] = []

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    def parameter_settings(self) -> str:
        return ""

    @property
    def full_name(self) -> str:
        return f"{self.name}_{self.parameter_settings}"

    def pre_process(self) -> None:
        self.command_elements.clear()
        self.add_command_elements()

    @abstractmethod
    def add_command_elements(self) -> None: ...

    def add_command_element(self, parameter: Any) -> None:
        self.command_elements.append(str(parameter))

    @property
    def command(self) -> str:
        return " ".join(self.command_elements)

    def read_output(self, line: str) -> None:
        """Called for every line the process writes to stdout."""

    def post_process(self) -> None:
        """Called after the process terminated normally."""

    def parse_results(self) -> Any:
        return None

    def __str__(self) -> str:
        return self.full_name


class JarAlgorithm(Algorithm):
    """Runs a command of a jar built to ``build/libs/<jar_name>.jar``.

    The process is asked to write its own run time next to ``output``.
    """

    def __init__(
        self,
        jar_name: str,
        command: str,
        input_path: str | Path,
        output_path: str | Path,
        memory_gb: int = -1,
    ):
        super().__init__()
        self.jar_name = jar_name
        self.jar_command = command
        self.input_path = Path(input_path)
        self.output_path = Path(output_path)
        self.time_path = self.output_path.with_name("time")
        self.memory_gb = memory_gb

    @property
    def name(self) -> str:
        return self.jar_command

    @property
    def parameter_settings(self) -> str:
        return self.jar_name

    def add_command_elements(self) -> None:
        self.add_command_element("java")
        if self.memory_gb > 0:
            self.add_command_element(f"-Xmx{self.memory_gb}g")
        self.add_command_element("-jar")
        self.add_command_element(f"build/libs/{self.jar_name}.jar")
        self.add_command_element("--command")
        self.add_command_element(self.jar_command)
        self.add_command_element("--input")
        self.add_command_element(self.input_path)
        self.add_command_element("--output")
        self.add_command_element(self.output_path)
        self.add_command_element("--write-time-to-file")
        self.add_command_element(self.time_path)

    def parse_results(self) -> Optional[int]:
        """Run time in ms written by the process, ``None`` if absent."""
        try:
            return int(self.time_path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None


class CommandAlgorithm(Algorithm):
    """Command template whose ``{placeholders}`` are filled from ``values``.

    The last non-empty stdout line is the result of the run.
    """

    def __init__(self, name: str, template: Sequence[str], values: Mapping[str, Any]):
        super().__init__()
        self._name = name
        self.template = list(template)
        self.values = dict(values)
        self.last_line: Optional[str] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def parameter_settings(self) -> str:
        return ",".join(f"{k}={v}" for k, v in sorted(self.values.items()))

    def add_command_elements(self) -> None:
        for part in self.template:
            try:
                self.add_command_element(part.format(**self.values))
            except KeyError as e:
                raise ValueError(f"{self._name}: unknown placeholder {e} in {part!r}") from e

    def read_output(self, line: str) -> None:
        if line.strip():
            self.last_line = line.strip()

    def parse_results(self) -> Optional[str]:
        return self.last_line


@dataclass
class ProcessResult:
    """Outcome of one process run.

    Fields:
        success: Process terminated with exit code 0 and its output parsed.
        timeout: Process was killed after exceeding the timeout.
        returncode: Exit code (``None`` if the process never started).
        time_ms: Wall time between launch and termination.
        result: Whatever :meth:`Algorithm.parse_results` returned.
        error: Short description of the failure, if any.
    """

    success: bool = False
    timeout: bool = False
    returncode: Optional[int] = None
    time_ms: int = -1
    result: Any = None
    error: Optional[str] = None


class ProcessRunner:
    """Runs algorithms as subprocesses with an optional timeout.

    Output is decoded as UTF-8; undecodable bytes are replaced. The runner
    enforces no memory limit itself: algorithms carry it on their command
    line (``-Xmx`` for :class:`JarAlgorithm`).
    """

    def __init__(self, timeout_ms: Optional[int] = None):
        self.timeout_ms = timeout_ms

    def run(self, algorithm: Algorithm) -> ProcessResult:
        result = ProcessResult()
        try:
            algorithm.pre_process()
        except Exception as e:
            logger.error("Could not build command for %s: %s", algorithm, e)
            result.error = str(e)
            return result

        logger.debug("Running %s (iteration %s): %s", algorithm.name, algorithm.iterations, algorithm.command)
        timeout_s = self.timeout_ms / 1000.0 if self.timeout_ms else None
        start = time.perf_counter()
        try:
            proc = subprocess.Popen(
                algorithm.command_elements,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            logger.error("Could not start %s: %s", algorithm.command_elements[:1], e)
            result.error = str(e)
            return result

        try:
            stdout, stderr = proc.communicate(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            proc.kill()
            stdout, stderr = proc.communicate()
            result.timeout = True
        result.time_ms = int((time.perf_counter() - start) * 1000)
        result.returncode = proc.returncode

        for line in stderr.splitlines():
            logger.warning("[%s] %s", algorithm.name, line)
        try:
            for line in stdout.splitlines():
                algorithm.read_output(line)
        except Exception as e:
            logger.error("Could not read output of %s: %s", algorithm, e)
            result.error = str(e)
            return result

        if result.timeout:
            logger.info("%s: timeout after %d ms", algorithm, self.timeout_ms)
            result.error = "timeout"
            return result
        if proc.returncode != 0:
            logger.info("%s: exit code %d", algorithm, proc.returncode)
            result.error = f"exit code {proc.returncode}"
            return result

        try:
            algorithm.post_process()
            result.result = algorithm.parse_results()
        except Exception as e:
            logger.error("Could not parse results of %s: %s", algorithm, e)
            result.error = str(e)
            return result
        result.success = True
        return result
