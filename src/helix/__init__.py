"""Helix: persistence core for activity-practice session tracking."""

__all__ = ["__version__"]

__version__ = "0.1.0"
