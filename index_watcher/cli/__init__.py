"""
Command-line interface module for the index watcher.

This module provides the process entry point: configuration loading,
signal handling, and the one-shot diagnostic commands.
"""

from .cli import main

__all__ = ["main"]
