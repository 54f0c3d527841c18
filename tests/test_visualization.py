from __future__ import annotations

from pathlib import Path

from evalmatrix.combiner import CombinationDriver
from evalmatrix.models import Axis
from evalmatrix.visualization import outcome_matrix, plot_outcome_grid


def _summary():
    driver = CombinationDriver(Axis("system", ["a", "b"]), Axis("algo", ["x", "y", "z"]))
    return driver.run(lambda changed: driver.current_indices() != (0, 0))


def test_outcome_matrix_layout() -> None:
    grid = outcome_matrix(_summary())
    assert grid.shape == (2, 3)
    # failed, skipped, skipped / succeeded x3
    assert grid.tolist() == [[3, 1, 1], [2, 2, 2]]


def test_plot_outcome_grid_writes_png(tmp_path: Path) -> None:
    out = plot_outcome_grid(_summary(), ["system", "algo"], tmp_path / "plots" / "grid.png")
    assert out == tmp_path / "plots" / "grid.png"
    assert out.stat().st_size > 0
    assert plot_outcome_grid(_summary(), ["system", "algo"]) is None
