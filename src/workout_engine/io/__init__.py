"""Snapshot serialization."""
