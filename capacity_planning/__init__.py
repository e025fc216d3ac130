"""Capacity planning scenarios: snapshots, what-if templates, financials and CSV import."""

__version__ = "1.0.0"
