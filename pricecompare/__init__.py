"""Grocery product matching and multi-source price aggregation."""

__version__ = "0.1.0"
