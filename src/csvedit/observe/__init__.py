"""Timing and lifecycle events."""
