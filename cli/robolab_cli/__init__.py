"""Robolab CLI — run block programs on the stage from a terminal."""

__version__ = "0.1.0"
