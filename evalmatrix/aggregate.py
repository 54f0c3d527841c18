from __future__ import annotations

import csv
import logging
import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

logger = logging.getLogger("evalmatrix.aggregate")

SUMMARY_COLUMNS = ("runs", "successes", "timeouts", "mean_time_ms")


def load_rows(csv_dir: Path, file_name: str) -> List[Dict[str, str]]:
    """Merge every ``<file_name>(-N)?.csv`` below ``csv_dir`` in file order."""
    csv_dir = Path(csv_dir)
    pattern = re.compile(re.escape(file_name) + r"(-(\d+))?[.]csv")

    def order(p: Path) -> Tuple[str, int]:
        m = pattern.fullmatch(p.name)
        return str(p.parent), int(m.group(2)) if m and m.group(2) else -1

    files = sorted((p for p in csv_dir.rglob("*.csv") if pattern.fullmatch(p.name)), key=order)
    rows: List[Dict[str, str]] = []
    for file in files:
        try:
            with open(file, "r", newline="", encoding="utf-8") as f:
                rows.extend(csv.DictReader(f))
        except (OSError, csv.Error) as e:
            logger.warning("Failed to load %s: %s", file, e)
    return rows


def _is_true(value: str | None) -> bool:
    return str(value).strip().lower() in ("true", "1", "yes")


def summarize(rows: Sequence[Dict[str, str]], group_by: Sequence[str]) -> List[Dict[str, object]]:
    """Per-group run counts and mean time of successful runs."""
    groups: Dict[Tuple[str, ...], List[Dict[str, str]]] = defaultdict(list)
    for r in rows:
        groups[tuple(r.get(col, "") for col in group_by)].append(r)

    out: List[Dict[str, object]] = []
    for key in sorted(groups):
        members = groups[key]
        times = []
        for r in members:
            if not _is_true(r.get("Success")):
                continue
            try:
                times.append(int(r.get("TimeMs") or ""))
            except ValueError:
                continue
        entry: Dict[str, object] = dict(zip(group_by, key))
        entry["runs"] = len(members)
        entry["successes"] = sum(1 for r in members if _is_true(r.get("Success")))
        entry["timeouts"] = sum(1 for r in members if _is_true(r.get("Timeout")))
        entry["mean_time_ms"] = round(sum(times) / len(times), 2) if times else ""
        out.append(entry)
    return out


def write_summary_csv(
    csv_dir: Path,
    file_name: str,
    group_by: Sequence[str] = ("System", "Algorithm"),
    out_name: str = "summary.csv",
) -> Path:
    csv_dir = Path(csv_dir)
    out_path = csv_dir / out_name
    rows = load_rows(csv_dir, file_name)
    if not rows:
        logger.info("No result rows found in %s", csv_dir)
    summary = summarize(rows, group_by)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=[*group_by, *SUMMARY_COLUMNS])
        writer.writeheader()
        writer.writerows(summary)
    logger.info("Summary written: %s", out_path)
    return out_path
