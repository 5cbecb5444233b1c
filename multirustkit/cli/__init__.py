"""
multirustkit CLI module.

This module provides the command dispatcher and the management
command-line interface.
"""

from .dispatch import classify, main, run
from .parser import CLI
from . import utils

__all__ = ["CLI", "classify", "main", "run", "utils"]
