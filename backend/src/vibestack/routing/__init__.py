"""Declarative resource routing: route configs, query building, enrichment and relationships."""
