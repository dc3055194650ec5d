#!/usr/bin/env python

"""Package entry point."""
import sys

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
