"""Attach workflow models."""
