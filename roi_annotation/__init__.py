"""Polygon region-of-interest annotation engine."""
