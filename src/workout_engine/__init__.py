"""Guided workout execution engine: set queues, supersets, rest timers and progression."""

__version__ = "0.1.0"
