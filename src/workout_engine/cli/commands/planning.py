"""Planning commands: queue, run."""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.config import load_rest_model
from ...core.divergence import compute_divergences
from ...core.exercises import EXERCISE_REGISTRY
from ...core.models import LoggedSet, SetType
from ...core.runner import WorkoutRunner
from ...core.set_queue import build_render_items, flatten_sets
from ...core.timer_state import is_finished, next_pending_set, phase
from ...io.serializers import flat_set_to_dict, save_snapshot
from .. import views
from ..app import SnapshotArg, app, read_snapshot


class SnapshotSink:
    """SetSink that appends confirmed sets to the in-memory snapshot logs."""

    def __init__(self, logs: list[LoggedSet]):
        self.logs = logs
        self._counter = 0

    def confirm_set(
        self,
        exercise_id: str,
        weight_kg: float,
        reps: int,
        set_type: SetType,
        transition: bool,
    ) -> str | None:
        self._counter += 1
        log_id = f"console-{self._counter}"
        set_number = sum(1 for log in self.logs if log.exercise_id == exercise_id) + 1
        self.logs.append(
            LoggedSet(
                exercise_id=exercise_id,
                set_number=set_number,
                set_type=set_type,
                weight_kg=weight_kg,
                reps=reps,
                log_id=log_id,
            )
        )
        return log_id

    def remove_set(self, log_id: str) -> None:
        self.logs[:] = [log for log in self.logs if log.log_id != log_id]


@app.command()
def queue(
    snapshot: SnapshotArg,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Show the flattened session queue for a snapshot.
    """
    template, logs = read_snapshot(snapshot)
    items = build_render_items(template, logs, EXERCISE_REGISTRY)
    sets = flatten_sets(items)

    if json_out:
        print(json.dumps([flat_set_to_dict(s) for s in sets], indent=2))
        return

    pending = sum(1 for s in sets if not s.completed)
    views.console.print()
    views.console.print(views.format_queue_table(sets))
    views.console.print(f"{len(items)} items, {len(sets)} sets, {pending} pending")
    views.console.print()


_RUN_HELP = (
    "[dim]Enter: start / confirm / end rest · c: confirm · p: pause · s: stop · "
    "u: undo · n/b: next/previous exercise · w <kg> · r <reps> · q: quit[/dim]"
)


def _print_status(runner: WorkoutRunner) -> None:
    state = runner.state
    if runner.is_resting:
        label = "Transition" if runner.countdown.is_transition else "Rest"
        views.console.print(
            f"[magenta]{label}[/magenta] {views.format_clock(runner.rest_remaining())}"
        )
        upcoming = next_pending_set(state)
        if upcoming is not None:
            views.console.print(f"  next: {views.format_set(upcoming)}")
        return

    current = runner.current
    if current is None:
        return
    views.console.print(f"[bold]{views.format_set(current)}[/bold]")
    views.console.print(
        f"  weight {views.format_weight(state.edit_weight)} · reps {state.edit_reps} · "
        f"{phase(state)} {views.format_clock(runner.elapsed_ms() / 1000, centis=True)}"
    )


def _handle(runner: WorkoutRunner, command: str) -> bool:
    """Apply one console command; returns False to quit."""
    key, _, arg = command.partition(" ")
    key = key.lower()

    if key == "q":
        return False
    if key == "":
        if runner.is_resting:
            runner.dismiss_rest()
        elif phase(runner.state) == "paused":
            runner.resume()
        elif phase(runner.state) == "running":
            runner.confirm()
        else:
            runner.start_set()
    elif key == "c":
        if runner.is_resting:
            runner.dismiss_rest()
        else:
            runner.confirm()
    elif key == "p":
        runner.pause()
    elif key == "s":
        runner.stop_set()
    elif key == "u":
        runner.undo()
    elif key == "n":
        runner.navigate(1)
    elif key == "b":
        runner.navigate(-1)
    elif key == "w":
        runner.edit_weight(arg)
    elif key == "r":
        runner.edit_reps(arg)
    else:
        views.print_warning(f"Unknown command: {key}")
    return True


@app.command()
def run(
    snapshot: SnapshotArg,
    save: Annotated[
        Optional[Path],
        typer.Option("--save", "-s", help="Write the updated snapshot here when done"),
    ] = None,
) -> None:
    """
    Step through a session interactively.
    """
    template, logs = read_snapshot(snapshot)
    sink = SnapshotSink(logs)
    runner = WorkoutRunner.from_snapshot(template, logs, sink, model=load_rest_model())

    if is_finished(runner.state):
        views.print_info("Nothing left to do in this session.")
        return

    views.console.print()
    views.console.print(f"[bold cyan]{template.name}[/bold cyan]")
    views.console.print(_RUN_HELP)

    while not is_finished(runner.state) or runner.is_resting:
        views.console.print()
        _print_status(runner)
        try:
            command = views.console.input("> ").strip()
        except EOFError:
            break
        if not _handle(runner, command):
            break

    views.console.print()
    if is_finished(runner.state) and not runner.is_resting:
        views.print_success("All sets complete.")

    divergences = compute_divergences(logs, template)
    if divergences:
        views.console.print(views.format_divergence_table(divergences))

    if save is not None:
        save_snapshot(save, template, logs)
        views.print_success(f"Snapshot saved to {save}")
