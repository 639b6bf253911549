"""
CLI entry point using Typer.

Developer console over the engine:
- queue: Show the flattened session queue for a snapshot
- run: Step through a session interactively
- review: Divergences and template update suggestions
- rest / warmup / e1rm: Formula calculators
- exercises: List the exercise catalog
"""

from .app import app
from .commands import analysis, calculators, planning  # noqa: F401  (registers commands)

if __name__ == "__main__":
    app()
