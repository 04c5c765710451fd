"""Conversion, validation, generation and loading services."""
