"""Shared Typer app object, shared option types, and snapshot utility."""

import logging
from pathlib import Path
from typing import Annotated

import typer

from ..core.models import LoggedSet, WorkoutTemplate
from ..io.serializers import ValidationError, load_snapshot
from . import views

# Shared snapshot argument used by the queue / run / review commands
SnapshotArg = Annotated[
    Path,
    typer.Argument(help='Snapshot JSON: {"template": {...}, "logs": [...]}'),
]

app = typer.Typer(
    name="workout-engine",
    help="Guided workout execution engine: session queue, rest timer and progression review.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show engine debug logging"),
    ] = False,
) -> None:
    """
    Developer console for the workout engine.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def read_snapshot(path: Path) -> tuple[WorkoutTemplate, list[LoggedSet]]:
    """Load a snapshot or exit with an error message."""
    try:
        return load_snapshot(path)
    except (FileNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
