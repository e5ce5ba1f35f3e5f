"""Entry point for `python -m dagmigrate`."""

import sys

from dagmigrate.cli import main

if __name__ == "__main__":
    sys.exit(main())
