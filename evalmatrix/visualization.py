from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import matplotlib

matplotlib.use("Agg")  # Must be set before importing pyplot
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
from matplotlib.colors import ListedColormap  # noqa: E402
from matplotlib.patches import Patch  # noqa: E402

from evalmatrix.models import FAILED, SKIPPED, SUCCEEDED, RunSummary  # noqa: E402

_STATUS_CODES = {SKIPPED: 1, SUCCEEDED: 2, FAILED: 3}
_COLORS = ["#FFFFFF", "#BBBBBB", "#2CA02C", "#D62728"]  # not reached, skipped, ok, failed


def outcome_matrix(summary: RunSummary) -> np.ndarray:
    """Status codes laid out as rows = outer combinations, cols = innermost axis.

    0 marks combinations the run never reached.
    """
    sizes = summary.sizes
    cols = sizes[-1]
    rows = summary.total // cols
    grid = np.zeros((rows, cols), dtype=int)
    for record in summary.records:
        flat = int(np.ravel_multi_index(record.indices, sizes))
        grid[flat // cols, flat % cols] = _STATUS_CODES[record.status]
    return grid


def plot_outcome_grid(
    summary: RunSummary,
    axis_names: Sequence[str],
    save_path: Optional[str | Path] = None,
    title: Optional[str] = None,
):
    """Draw succeeded / failed / skipped cells for every combination.

    Returns the path of the saved PNG or ``None`` when ``save_path`` is not
    given (the figure is closed either way).
    """
    grid = outcome_matrix(summary)
    rows, cols = grid.shape
    fig, ax = plt.subplots(
        figsize=(min(4 + cols * 0.4, 18), min(2 + rows * 0.25, 16)),
        constrained_layout=True,
    )
    ax.imshow(grid, cmap=ListedColormap(_COLORS), vmin=0, vmax=len(_COLORS) - 1, aspect="auto")
    ax.set_xlabel(axis_names[-1] if axis_names else "axis", fontsize=11)
    ax.set_ylabel(" x ".join(axis_names[:-1]) or "combination", fontsize=11)
    ax.set_title(
        title
        or f"executed={summary.executed} failed={summary.failed} skipped={summary.skipped}",
        fontsize=12,
    )
    legend = [
        Patch(facecolor=_COLORS[2], label="succeeded"),
        Patch(facecolor=_COLORS[3], label="failed"),
        Patch(facecolor=_COLORS[1], label="skipped"),
    ]
    ax.legend(handles=legend, bbox_to_anchor=(1.02, 1), loc="upper left", fontsize=8)
    out = None
    if save_path:
        out = Path(save_path)
        out.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(out, dpi=120)
    plt.close(fig)
    return out
