"""Gazette Watch - insolvency notice dashboard API."""

__version__ = "1.0.0"
