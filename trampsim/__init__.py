"""Trampoline skill modelling, difficulty scoring and routine generation."""

__version__ = "0.1.0"
