"""Radiology productivity statistics from pipe-delimited study exports."""

__version__ = "0.1.0"
