"""Calculator commands: rest, warmup, e1rm, exercises."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import load_rest_model
from ...core.exercises import MUSCLE_GROUPS, find_exercises
from ...core.formulas import (
    calculate_rest,
    estimated_1rm,
    generate_backoff_sets,
    generate_warmup_sets,
    round_weight,
    weight_for_reps,
)
from ...core.models import SET_TYPES, TRAINING_GOALS
from .. import views
from ..app import app


@app.command()
def rest(
    reps: Annotated[int, typer.Argument(help="Reps of the set just performed")],
    tier: Annotated[
        int,
        typer.Option("--tier", "-t", help="Fatigue tier 1 (heavy compound) to 4 (isolation)"),
    ] = 2,
    goal: Annotated[
        str,
        typer.Option("--goal", "-g", help="hypertrophy or strength"),
    ] = "hypertrophy",
    set_type: Annotated[
        str,
        typer.Option("--set-type", help="warmup, working or backoff"),
    ] = "working",
    transition: Annotated[
        bool,
        typer.Option("--transition", help="Mid-round superset transition"),
    ] = False,
) -> None:
    """
    Show the rest period after a set.
    """
    model = load_rest_model()
    if tier not in model.tier_base:
        views.print_error(f"Tier must be one of {sorted(model.tier_base)}")
        raise typer.Exit(1)
    if goal not in TRAINING_GOALS:
        views.print_error(f"Goal must be one of {TRAINING_GOALS}")
        raise typer.Exit(1)
    if set_type not in SET_TYPES:
        views.print_error(f"Set type must be one of {SET_TYPES}")
        raise typer.Exit(1)
    if reps < 0:
        views.print_error("Reps must be non-negative")
        raise typer.Exit(1)

    if transition:
        seconds = model.transition_seconds
    else:
        seconds = calculate_rest(reps, tier, goal, set_type, model)  # type: ignore[arg-type]
    views.console.print(f"Rest: [bold]{seconds}s[/bold] ({views.format_clock(seconds)})")


@app.command()
def warmup(
    weight: Annotated[float, typer.Argument(help="Working weight in kg")],
    reps: Annotated[int, typer.Argument(help="Working reps")],
    backoff: Annotated[
        int,
        typer.Option("--backoff", "-b", help="Number of backoff sets to show"),
    ] = 0,
) -> None:
    """
    Show the warmup ramp (and optional backoff sets) for a working set.
    """
    if weight < 0 or reps < 0 or backoff < 0:
        views.print_error("Weight, reps and backoff count must be non-negative")
        raise typer.Exit(1)

    warmups = generate_warmup_sets(weight, reps)
    if warmups:
        views.console.print(views.format_generated_sets(warmups, "Warmup"))
    else:
        views.print_info("No warmup sets for this weight.")
    if backoff:
        views.console.print(
            views.format_generated_sets(generate_backoff_sets(weight, reps, backoff), "Backoff")
        )


@app.command()
def e1rm(
    weight: Annotated[float, typer.Argument(help="Weight lifted in kg")],
    reps: Annotated[int, typer.Argument(help="Reps performed")],
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Estimate the one-rep max and rep-max weights (Brzycki).
    """
    one_rm = estimated_1rm(weight, reps)
    table = {r: round_weight(weight_for_reps(one_rm, r), "kg", "down") for r in (1, 3, 5, 8, 10, 12)}

    if json_out:
        print(json.dumps({"e1rm": round(one_rm, 2), "rep_max_kg": table}, indent=2))
        return

    views.console.print(f"e1RM: [bold]{one_rm:.1f} kg[/bold]")
    views.console.print("  " + "  ".join(f"{r}RM {w:g}" for r, w in table.items()))


@app.command()
def exercises(
    muscle: Annotated[
        Optional[str],
        typer.Option("--muscle", "-m", help="Only exercises that target this muscle group"),
    ] = None,
    exercise_type: Annotated[
        Optional[str],
        typer.Option("--type", help="compound or isolation"),
    ] = None,
) -> None:
    """
    List the exercise catalog.
    """
    if muscle is not None and muscle not in MUSCLE_GROUPS:
        views.print_error(f"Muscle group must be one of {MUSCLE_GROUPS}")
        raise typer.Exit(1)
    if exercise_type is not None and exercise_type not in ("compound", "isolation"):
        views.print_error("Type must be compound or isolation")
        raise typer.Exit(1)

    matches = find_exercises(muscle, exercise_type)  # type: ignore[arg-type]
    if not matches:
        views.print_info("No exercises match.")
        return
    views.console.print(views.format_exercise_table(matches))
