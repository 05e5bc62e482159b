"""Tabkeeper - idle tab freezing and frozen tab reclamation."""

__version__ = "0.1.0"
