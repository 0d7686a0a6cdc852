"""Reverse image search aggregation service."""

__version__ = "1.0.0"
