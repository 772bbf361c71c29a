"""Tracking core for a projector-based shooting-range trainer."""

__version__ = "0.1.0"
