# EASY/easy/__init__.py

"""EASY - Effortless Automated Self-hosting for You."""

__version__ = "1.2.0"
