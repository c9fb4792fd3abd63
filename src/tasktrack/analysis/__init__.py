"""Aggregation and reporting."""
