"""
Entry point for running the multirust CLI as a module.

Usage: python -m multirustkit.cli [command] [options]
"""

import sys

from .dispatch import main

if __name__ == "__main__":
    main(["multirust", *sys.argv[1:]])
