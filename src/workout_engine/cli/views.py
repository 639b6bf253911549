"""
Rich-based views for the developer console.

Tables for the session queue, divergences and the exercise catalog, the
timer clock format, and the usual message helpers.
"""

import math

from rich.console import Console
from rich.table import Table

from ..core.exercises.base import ExerciseDefinition
from ..core.models import Divergence, FlatSet, GeneratedSet, TemplateUpdate

console = Console()

SET_TYPE_STYLES = {"warmup": "yellow", "working": "bold", "backoff": "cyan"}


def format_clock(seconds: float, centis: bool = False) -> str:
    """
    Format a signed duration as m:ss (h:mm:ss past an hour).

    Negative values (an overshot rest countdown) get a leading '-'.
    With centis=True hundredths are appended: 1:05.37.
    """
    sign = "-" if seconds < 0 else ""
    total = abs(seconds)
    h = int(total // 3600)
    m = int((total % 3600) // 60)
    s = int(total % 60)
    hm = f"{h}:{m:02d}" if h > 0 else f"{m}"
    text = f"{sign}{hm}:{s:02d}"
    if centis:
        cs = math.floor((total * 100) % 100)
        text += f".{cs:02d}"
    return text


def format_weight(weight_kg: float | None) -> str:
    if weight_kg is None:
        return "-"
    return f"{weight_kg:g} kg"


def format_set(flat: FlatSet) -> str:
    """One-line description: 'Back Squat  working 3/5  100 kg × 5'."""
    return (
        f"{flat.exercise_name}  {flat.set_type} {flat.set_number}/{flat.total_sets}  "
        f"{format_weight(flat.weight_kg)} × {flat.reps}"
    )


def format_queue_table(queue: list[FlatSet], current_index: int = -1) -> Table:
    """
    Create a Rich table displaying the flattened session queue.

    Args:
        queue: Flat execution queue
        current_index: Row to highlight (-1 for none)

    Returns:
        Rich Table object
    """
    table = Table(title="Session Queue")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Item", justify="right", style="dim")
    table.add_column("Exercise", style="cyan")
    table.add_column("Type")
    table.add_column("Set", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Next")
    table.add_column("Done", justify="center")

    for i, flat in enumerate(queue):
        style = SET_TYPE_STYLES.get(flat.set_type, "")
        marker = "▶ " if i == current_index else ""
        table.add_row(
            f"{marker}{i}",
            str(flat.item_index),
            flat.exercise_name,
            f"[{style}]{flat.set_type}[/{style}]" if style else flat.set_type,
            f"{flat.set_number}/{flat.total_sets}",
            format_weight(flat.weight_kg),
            str(flat.reps),
            "transition" if flat.transition else "rest",
            "✓" if flat.completed else "",
        )

    return table


def format_divergence_table(divergences: list[Divergence]) -> Table:
    table = Table(title="Planned vs. Actual")

    table.add_column("Exercise", style="cyan")
    table.add_column("Planned", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Suggestion", justify="right", style="bold")
    table.add_column("Improved", justify="center")

    for d in divergences:
        table.add_row(
            d.exercise_name,
            f"{d.planned.sets}×{d.planned.reps} @ {format_weight(d.planned.weight)}",
            f"{d.actual.sets}×{d.actual.reps} @ {format_weight(d.actual.weight)}",
            f"{d.suggestion.target_sets}×{d.suggestion.target_reps} @ "
            f"{format_weight(d.suggestion.target_weight)}",
            "[green]yes[/green]" if d.improved else "[red]no[/red]",
        )

    return table


def format_updates_table(updates: list[TemplateUpdate], title: str) -> Table:
    table = Table(title=title)

    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Weight", justify="right")

    for u in updates:
        table.add_row(
            u.exercise_id,
            str(u.target_sets),
            str(u.target_reps),
            format_weight(u.target_weight),
        )

    return table


def format_exercise_table(exercises: list[ExerciseDefinition]) -> Table:
    table = Table(title="Exercise Catalog")

    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Tier", justify="right")
    table.add_column("Strength", justify="right")
    table.add_column("Hypertrophy", justify="right")
    table.add_column("Muscles", style="dim")

    def _range(low: int | None, high: int | None) -> str:
        return f"{low}–{high}" if low is not None and high is not None else "-"

    for ex in exercises:
        table.add_row(
            ex.exercise_id,
            ex.display_name,
            ex.type,
            str(ex.fatigue_tier),
            _range(ex.strength_reps_min, ex.strength_reps_max),
            _range(ex.hypertrophy_reps_min, ex.hypertrophy_reps_max),
            ", ".join(f"{m.muscle_group} {m.intensity:g}" for m in ex.muscles),
        )

    return table


def format_generated_sets(sets: list[GeneratedSet], title: str) -> Table:
    table = Table(title=title)

    table.add_column("#", justify="right", style="dim")
    table.add_column("Weight", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Type")

    for i, s in enumerate(sets, 1):
        table.add_row(str(i), format_weight(s.weight_kg), str(s.reps), s.set_type)

    return table


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
