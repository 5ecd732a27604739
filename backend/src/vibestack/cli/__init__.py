"""Vibestack CLI."""
