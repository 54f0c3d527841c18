import argparse
import logging
from typing import Optional, Sequence

from evalmatrix.config import load_config
from evalmatrix.modes import MODES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run an evaluation matrix (config only)")
    parser.add_argument(
        "--config",
        required=True,
        help="Path to the YAML configuration file (required)",
    )
    parser.add_argument(
        "--mode",
        choices=sorted(MODES),
        default="run",
        help="'run' executes the command matrix, 'clean' resets the current output folder",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    evaluator = MODES[args.mode](config)
    return 0 if evaluator.run() else 1
