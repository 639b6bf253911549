"""Developer console for workout-engine."""
