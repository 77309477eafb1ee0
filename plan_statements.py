#!/usr/bin/env python3
"""Credit card statement planner.

This is the main entry point script for the statement planner.
It wraps the package CLI for convenient execution.

Usage:
    python plan_statements.py import naranja_x resumen.pdf
    python plan_statements.py show --mode projection

For full documentation and options:
    python plan_statements.py --help
"""

import sys
from pathlib import Path

# Add src to path for development installs
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from statement_planner.cli import main

if __name__ == "__main__":
    sys.exit(main())
