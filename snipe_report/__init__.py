"""Snipe-IT inventory reports - laptops, users, models and more."""

__version__ = "1.0.0"
