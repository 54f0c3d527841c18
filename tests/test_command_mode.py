"""End-to-end run of the command matrix through the CLI."""

from __future__ import annotations

import csv
import sys
from pathlib import Path

import yaml

from evalmatrix.cli import main
from evalmatrix.evaluator import CURRENT_MARKER

PY = sys.executable


def _write_config(tmp_path: Path, **extra) -> Path:
    models = tmp_path / "models"
    models.mkdir(exist_ok=True)
    (models / "bad").write_text("b\n", encoding="utf-8")
    (models / "good").write_text("g\n", encoding="utf-8")
    data = {
        "output": str(tmp_path / "results"),
        "models": str(models),
        "resources": str(tmp_path / "resources"),
        "timeout_ms": 20000,
        "seed": 5,
        "system_iterations": 1,
        "algorithm_iterations": 2,
        "algorithms": {
            "ok": [PY, "-c", "import sys; print(len(sys.argv[1]))", "{system_path}"],
            "picky": [
                PY,
                "-c",
                "import sys; sys.exit(1 if sys.argv[1] == 'bad' else 0)",
                "{system}",
            ],
        },
    }
    data.update(extra)
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def _data_dir(tmp_path: Path) -> Path:
    root = tmp_path / "results"
    marker = (root / CURRENT_MARKER).read_text(encoding="utf-8").strip()
    (data_dir,) = list((root / marker / "data").iterdir())
    return data_dir


def test_command_matrix_runs_and_prunes(tmp_path: Path) -> None:
    config = _write_config(tmp_path)
    assert main(["--config", str(config)]) == 0

    data_dir = _data_dir(tmp_path)
    with open(data_dir / "runs-0.csv", newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    # picky fails on its first iteration for "bad": its second iteration is
    # skipped, everything else runs.
    executed = [(r["System"], r["Algorithm"], r["AlgorithmIteration"]) for r in rows]
    assert executed == [
        ("bad", "ok", "1"),
        ("bad", "ok", "2"),
        ("bad", "picky", "1"),
        ("good", "ok", "1"),
        ("good", "ok", "2"),
        ("good", "picky", "1"),
        ("good", "picky", "2"),
    ]
    assert [r["ID"] for r in rows] == [str(i) for i in range(7)]
    assert rows[2]["Success"] == "False"
    assert all(r["Success"] == "True" for i, r in enumerate(rows) if i != 2)
    assert rows[0]["Result"] == str(len(str(tmp_path / "models" / "bad")))

    with open(data_dir / "summary.csv", newline="", encoding="utf-8") as f:
        summary = {(r["System"], r["Algorithm"]): r for r in csv.DictReader(f)}
    assert summary[("bad", "picky")]["runs"] == "1"
    assert summary[("bad", "picky")]["successes"] == "0"
    assert summary[("good", "ok")]["successes"] == "2"

    marker_dir = data_dir.parent.parent
    assert (marker_dir / "gen" / "outcomes.png").is_file()
    assert (data_dir / "config.yaml").is_file()


def test_ids_continue_across_runs(tmp_path: Path) -> None:
    config = _write_config(tmp_path, algorithm_iterations=1, systems=["good"])
    assert main(["--config", str(config)]) == 0
    assert main(["--config", str(config)]) == 0
    root = tmp_path / "results"
    marker = (root / CURRENT_MARKER).read_text(encoding="utf-8").strip()
    ids = []
    for path in sorted((root / marker / "data").rglob("runs-*.csv")):
        with open(path, newline="", encoding="utf-8") as f:
            ids.extend(int(r["ID"]) for r in csv.DictReader(f))
    assert sorted(ids) == [0, 1, 2, 3]


def test_clean_mode_resets_marker(tmp_path: Path) -> None:
    config = _write_config(tmp_path, algorithm_iterations=1, systems=["good"])
    assert main(["--config", str(config)]) == 0
    assert (tmp_path / "results" / CURRENT_MARKER).exists()
    assert main(["--config", str(config), "--mode", "clean"]) == 0
    assert not (tmp_path / "results" / CURRENT_MARKER).exists()


def test_missing_algorithms_fails(tmp_path: Path) -> None:
    config = _write_config(tmp_path, algorithms={})
    assert main(["--config", str(config)]) == 1


def test_undecodable_output_still_writes_a_row(tmp_path: Path) -> None:
    binary = [PY, "-c", "import sys; sys.stdout.buffer.write(b'\\xff\\n')"]
    config = _write_config(
        tmp_path,
        algorithm_iterations=2,
        systems=["good"],
        algorithms={"binary": binary},
    )
    assert main(["--config", str(config)]) == 0

    with open(_data_dir(tmp_path) / "runs-0.csv", newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["ID"] for r in rows] == ["0", "1"]
    assert all(r["Success"] == "True" for r in rows)
    assert rows[0]["Result"] == "\ufffd"
