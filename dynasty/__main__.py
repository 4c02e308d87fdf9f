"""
Run a headless simulation.

Usage:
    python -m dynasty --turns 40 --seed 7
"""

import sys

from .interface.cli import main

if __name__ == "__main__":
    sys.exit(main())
