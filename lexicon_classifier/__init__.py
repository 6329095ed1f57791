"""Supervised text classification over weighted lexical features."""

__version__ = "0.1.0"
