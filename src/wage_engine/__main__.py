"""Entry point for running the wage engine CLI."""

import sys

from wage_engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
