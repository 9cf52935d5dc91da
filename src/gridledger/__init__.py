"""Gridledger: monthly energy-accounting aggregation and reporting service."""

__version__ = "0.1.0"
