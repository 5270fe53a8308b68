"""Workback design-programme tracker engines."""

__version__ = "0.1.0"
