"""Ranked search over software package records."""

__version__ = "0.1.0"
