from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from warren.data.achievements import ACHIEVEMENTS, Achievement, ColonyStats
from warren.state import ColonyState


def evaluate_achievements(
    stats: ColonyStats,
    unlocked: Iterable[str],
    catalog: Sequence[Achievement] = ACHIEVEMENTS,
) -> list[str]:
    """Ids of catalog achievements newly satisfied by ``stats``, in catalog order."""

    already = set(unlocked)
    return [
        achievement.achievement_id
        for achievement in catalog
        if achievement.achievement_id not in already and achievement.requirement(stats)
    ]


@dataclass(frozen=True, slots=True)
class UnlockResult:
    state: ColonyState
    unlocked: tuple[str, ...] = ()

    @property
    def latest(self) -> str | None:
        return self.unlocked[-1] if self.unlocked else None


def apply_unlocks(state: ColonyState) -> UnlockResult:
    """Record every newly met achievement against the state's current day."""

    fresh = evaluate_achievements(ColonyStats.from_state(state), state.unlocked_achievements)
    if not fresh:
        return UnlockResult(state=state)
    unlock_day = dict(state.achievement_unlock_day)
    for achievement_id in fresh:
        unlock_day[achievement_id] = state.day
    updated = replace(
        state,
        unlocked_achievements=state.unlocked_achievements | frozenset(fresh),
        achievement_unlock_day=unlock_day,
    )
    return UnlockResult(state=updated, unlocked=tuple(fresh))


__all__ = ["UnlockResult", "apply_unlocks", "evaluate_achievements"]
