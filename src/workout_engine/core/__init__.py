"""Core engine: formulas, queue building, execution state and analysis."""
