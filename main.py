#!/usr/bin/env python3
"""Command line entry point: ``python main.py --config config.yaml [--mode clean]``."""

import sys

from evalmatrix.cli import main

if __name__ == "__main__":
    sys.exit(main())
