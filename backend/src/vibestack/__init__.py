"""Vibestack - metadata-driven resource and relationship API."""

__version__ = "0.1.0"
