"""Analysis commands: review."""

import json
from typing import Annotated

import typer

from ...core.divergence import (
    compute_divergences,
    new_exercise_suggestions,
    template_update_suggestions,
)
from ...core.exercises import EXERCISE_REGISTRY
from ...core.formulas import exercise_e1rm_stats
from ...io.serializers import divergence_to_dict, template_update_to_dict
from .. import views
from ..app import SnapshotArg, app, read_snapshot


@app.command()
def review(
    snapshot: SnapshotArg,
    accept_all: Annotated[
        bool,
        typer.Option("--accept-all", "-a", help="Apply every suggestion, not only improvements"),
    ] = False,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Compare the session's logs with the template and suggest updates.
    """
    template, logs = read_snapshot(snapshot)

    divergences = compute_divergences(logs, template)
    accepted = {d.exercise_id: True for d in divergences} if accept_all else None
    updates = template_update_suggestions(divergences, accepted)
    additions = new_exercise_suggestions(logs, template)

    names = {ex_id: ex.display_name for ex_id, ex in EXERCISE_REGISTRY.items()}
    names.update({te.exercise_id: te.exercise.name for te in template.exercises})
    stats = exercise_e1rm_stats(logs, names)

    if json_out:
        print(json.dumps({
            "divergences": [divergence_to_dict(d) for d in divergences],
            "template_updates": [template_update_to_dict(u) for u in updates],
            "add_exercises": [template_update_to_dict(u) for u in additions],
            "e1rm": stats,
        }, indent=2))
        return

    views.console.print()
    if not divergences and not additions:
        views.print_success("Session matched the template.")
    if divergences:
        views.console.print(views.format_divergence_table(divergences))
    if updates:
        views.console.print(views.format_updates_table(updates, "Template Updates"))
    if additions:
        views.console.print(views.format_updates_table(additions, "Add to Template"))

    for s in stats:
        views.console.print(
            f"  {s['name']}: best {s['weight_kg']:g} kg × {s['reps']} "
            f"(e1RM {s['e1rm']:.1f} kg, volume {s['volume']:g} kg)"
        )
    views.console.print()
