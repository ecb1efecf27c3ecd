#!/usr/bin/env python3
"""
SrtAlign Entry Point Script

Runs the check, fix and plan commands on a single subtitle file.
"""

import sys
from srtalign.cli import CLIHandler

if __name__ == "__main__":
    if sys.version_info < (3, 8):
        sys.stderr.write("SrtAlign requires Python 3.8 or later.\n")
        sys.exit(1)

    cli = CLIHandler()
    cli.run()
