"""Conformance checking for storage adapters."""

__version__ = "0.1.0"
