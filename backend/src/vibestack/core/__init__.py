"""Core framework types."""
