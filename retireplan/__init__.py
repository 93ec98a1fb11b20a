"""Retirement withdrawal and tax projection engine."""

__version__ = "0.1.0"
