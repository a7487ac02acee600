"""Streamed task decoding, turn aggregation and goal execution."""

__version__ = "0.1.0"
