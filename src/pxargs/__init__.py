"""Parallel batch command runner."""

__version__ = "0.3.0"
