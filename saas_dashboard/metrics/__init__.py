"""Metric aggregation pipeline."""
