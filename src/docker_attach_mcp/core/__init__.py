"""Attach session state and errors."""
