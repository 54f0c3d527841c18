from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Any, Iterator, List, Sequence

from evalmatrix.exceptions import PreconditionError


class CSVFile:
    """Append-only CSV writer with a header defined once.

    Lines are buffered by :meth:`add_line` and appended on :meth:`flush`, so a
    crash in a later combination never loses rows that were already flushed.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.header: List[str] = []
        self._pending: List[List[str]] = []
        self._header_written = self.path.exists() and self.path.stat().st_size > 0

    def set_header_fields(self, *fields: str) -> None:
        if self._header_written:
            raise PreconditionError(f"{self.path}: header already written")
        self.header = [str(f) for f in fields]

    def add_line(self, *values: Any) -> None:
        if self.header and len(values) != len(self.header):
            raise ValueError(
                f"{self.path}: expected {len(self.header)} values, got {len(values)}"
            )
        self._pending.append(["" if v is None else str(v) for v in values])

    def flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            if not self._header_written and self.header:
                writer.writerow(self.header)
                self._header_written = True
            writer.writerows(self._pending)
        self._pending.clear()

    @staticmethod
    def read_all_lines(path: str | Path) -> Iterator[List[str]]:
        with open(path, "r", newline="", encoding="utf-8") as f:
            yield from csv.reader(f)


def next_csv_path(directory: str | Path, file_name: str) -> Path:
    """Return ``<directory>/<file_name>-<count>.csv`` where ``count`` is the
    number of ``<file_name>(-N)?.csv`` files already present (recursively)."""
    directory = Path(directory)
    pattern = re.compile(re.escape(file_name) + r"(-\d+)?[.]csv")
    count = sum(1 for p in directory.rglob("*.csv") if pattern.fullmatch(p.name))
    return directory / f"{file_name}-{count}.csv"


def open_csv_writer(directory: str | Path, file_name: str, header: Sequence[str]) -> CSVFile:
    csv_file = CSVFile(next_csv_path(directory, file_name))
    csv_file.set_header_fields(*header)
    csv_file.flush()
    return csv_file


def read_max_csv_id(csv_file: str | Path) -> int:
    """Largest integer in the first column (header skipped), ``-1`` if none."""
    try:
        ids = [int(line[0]) for line in list(CSVFile.read_all_lines(csv_file))[1:] if line]
    except (OSError, ValueError, IndexError):
        return -1
    return max(ids, default=-1)
