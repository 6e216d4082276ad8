"""Airline passenger invoice tracking."""

__version__ = "0.1.0"
