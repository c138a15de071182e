"""Extraction services: single-cell extraction, runs and column design."""
