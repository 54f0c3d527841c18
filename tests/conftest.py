"""Pytest configuration & custom summary hook.

Also ensures the repository root is on sys.path so 'import evalmatrix' works
without installing the package.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_root = Path(__file__).resolve().parents[1]
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

from evalmatrix.config import EvaluationConfig  # noqa: E402


@pytest.fixture
def make_config(tmp_path: Path):
    """Build an EvaluationConfig rooted in the test's tmp_path."""

    def _make(**options) -> EvaluationConfig:
        data = {
            "output": str(tmp_path / "results"),
            "models": str(tmp_path / "models"),
            "resources": str(tmp_path / "resources"),
        }
        data.update(options)
        return EvaluationConfig.from_mapping(data)

    return _make


def pytest_terminal_summary(
    terminalreporter: pytest.TerminalReporter,
    exitstatus: int,
    config: pytest.Config,
) -> None:  # noqa: D401
    """Append a compact custom summary at the end of test session."""
    stats = terminalreporter.stats
    collected = terminalreporter._numcollected  # type: ignore[attr-defined]
    passed = len(stats.get("passed", []))
    failed = len(stats.get("failed", []))
    errors = len(stats.get("error", []))
    skipped = len(stats.get("skipped", []))

    terminalreporter.section("Custom summary", sep="=")
    terminalreporter.write_line(
        "Collected: "
        f"{collected} | Passed: {passed} | Failed: {failed} | "
        f"Errors: {errors} | Skipped: {skipped}"
    )
    if failed:
        terminalreporter.write_line("Failed tests:")
        for rep in stats["failed"]:
            terminalreporter.write_line(f"  - {rep.nodeid}")
