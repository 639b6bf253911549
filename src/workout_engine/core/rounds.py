"""
Superset round building.

Synchronizes the individually planned warmup / working / backoff phases
of a superset's members into an ordered sequence of rounds.  Every
warmup round comes before any working round, and every working round
before any backoff round, so each member is primed before intensity
increases.  Within a phase, round i holds the i-th set of every member
that still has one.
"""

from dataclasses import dataclass
from typing import Sequence

from .models import (
    SET_TYPES,
    ExtraLog,
    LoggedSet,
    PlannedSet,
    Round,
    RoundSet,
    SupersetMember,
    SupersetRounds,
)


@dataclass(frozen=True)
class _MemberPhases:
    """One member's round sets split by phase, plus its unplanned logs."""

    member: SupersetMember
    phases: dict[str, tuple[RoundSet, ...]]
    extras: tuple[LoggedSet, ...]


def _split_member(member: SupersetMember, exercise_index: int) -> _MemberPhases:
    phases: dict[str, tuple[RoundSet, ...]] = {}
    extras: list[LoggedSet] = []

    for set_type in SET_TYPES:
        planned: list[PlannedSet] = [p for p in member.planned if p.set_type == set_type]
        logs: list[LoggedSet] = [log for log in member.logs if log.set_type == set_type]

        phases[set_type] = tuple(
            RoundSet(
                exercise_id=member.exercise_id,
                exercise=member.exercise,
                planned=p,
                log=logs[i] if i < len(logs) else None,
                exercise_index=exercise_index,
            )
            for i, p in enumerate(planned)
        )
        extras.extend(logs[len(planned):])

    return _MemberPhases(member=member, phases=phases, extras=tuple(extras))


def build_superset_rounds(members: Sequence[SupersetMember]) -> SupersetRounds:
    """
    Build the round sequence for one superset group.

    Args:
        members: Superset members in template order

    Returns:
        SupersetRounds with all warmup rounds, then working, then backoff
        rounds, and the logs beyond each phase's planned count as extras
        (member order, then phase order)
    """
    split = [_split_member(m, idx) for idx, m in enumerate(members)]

    rounds: list[Round] = []
    for set_type in SET_TYPES:
        round_count = max((len(s.phases[set_type]) for s in split), default=0)
        for i in range(round_count):
            sets = tuple(
                s.phases[set_type][i] for s in split if i < len(s.phases[set_type])
            )
            rounds.append(Round(set_type=set_type, sets=sets))  # type: ignore[arg-type]

    extra_logs = tuple(
        ExtraLog(log=log, exercise=s.member.exercise) for s in split for log in s.extras
    )

    return SupersetRounds(rounds=tuple(rounds), extra_logs=extra_logs)
