"""
Entry point for running multirustkit as a module.

Usage: python -m multirustkit [command] [options]
"""

import sys

from multirustkit.cli.dispatch import main

if __name__ == "__main__":
    main(["multirust", *sys.argv[1:]])
