"""Leaderboard projection and best-effort sync.

The leaderboard keeps one row per player holding their best colony, ranked by
total rabbits.  A row is only replaced when the new total beats the stored one.
Finished runs are also appended to a per-player run history.

Sync never fails the caller: backend errors are recorded in the event log and
counted in telemetry, then swallowed.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, Sequence

from warren.admin_log import ColonyEventLog
from warren.runtime.telemetry import Metrics
from warren.state import BASE_CAPACITY_PER_HOUSE, Breed, ColonyState, RunRecord


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    player_id: str
    achievements_count: int = 0
    achievements: tuple[str, ...] = ()
    day: int = 1
    house_capacity: int = BASE_CAPACITY_PER_HOUSE
    rabbits_common: int = 0
    rabbits_rare: int = 0
    rabbits_legendary: int = 0
    current_coins: int = 0
    total_rabbits_born: int = 0
    total_coins_earned: int = 0
    last_updated: str = ""
    player_name: str | None = None

    @property
    def total_rabbits(self) -> int:
        return self.rabbits_common + self.rabbits_rare + self.rabbits_legendary

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["achievements"] = list(self.achievements)
        if self.player_name is None:
            payload.pop("player_name")
        return payload


@dataclass(frozen=True, slots=True)
class RunHistoryRow:
    player_id: str
    run_ended_at: str
    day: int
    total_coins_earned: int
    rabbits: int
    houses: int
    achievements: tuple[str, ...] = ()


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def progress_from_state(
    state: ColonyState, *, player_id: str, player_name: str | None = None, now: float | None = None
) -> ProgressRecord:
    counts = state.breed_counts()
    return ProgressRecord(
        player_id=player_id,
        achievements_count=len(state.unlocked_achievements),
        achievements=tuple(sorted(state.unlocked_achievements)),
        day=state.day,
        house_capacity=state.capacity,
        rabbits_common=counts[Breed.COMMON],
        rabbits_rare=counts[Breed.RARE],
        rabbits_legendary=counts[Breed.LEGENDARY],
        current_coins=state.coins,
        total_rabbits_born=state.total_born,
        total_coins_earned=state.total_coins_earned,
        last_updated=_iso(time.time() if now is None else now),
        player_name=player_name,
    )


def progress_from_run(
    run: RunRecord, state: ColonyState, *, player_id: str, player_name: str | None = None, now: float | None = None
) -> ProgressRecord:
    """Leaderboard row for an archived run; breed detail is not kept, so all rabbits count as common."""

    return ProgressRecord(
        player_id=player_id,
        achievements_count=len(run.achievements),
        achievements=tuple(run.achievements),
        day=run.day,
        house_capacity=run.houses * (BASE_CAPACITY_PER_HOUSE + state.capacity_bonus_per_house),
        rabbits_common=run.population,
        total_rabbits_born=state.total_born,
        total_coins_earned=run.total_coins_earned,
        last_updated=_iso(time.time() if now is None else now),
        player_name=player_name,
    )


def best_run(history: Sequence[RunRecord]) -> RunRecord | None:
    """Run with the most rabbits; the earliest wins ties."""

    best: RunRecord | None = None
    for run in history:
        if best is None or run.population > best.population:
            best = run
    return best


class LeaderboardBackend(Protocol):
    def fetch(self, player_id: str) -> ProgressRecord | None: ...

    def upsert(self, record: ProgressRecord) -> None: ...

    def insert_run(self, row: RunHistoryRow) -> None: ...


@dataclass(slots=True)
class InMemoryLeaderboard:
    rows: dict[str, ProgressRecord] = field(default_factory=dict)
    runs: list[RunHistoryRow] = field(default_factory=list)

    def fetch(self, player_id: str) -> ProgressRecord | None:
        return self.rows.get(player_id)

    def upsert(self, record: ProgressRecord) -> None:
        existing = self.rows.get(record.player_id)
        if existing is not None and record.player_name is None and existing.player_name is not None:
            record = replace(record, player_name=existing.player_name)
        self.rows[record.player_id] = record

    def insert_run(self, row: RunHistoryRow) -> None:
        self.runs.append(row)

    def top(self, limit: int = 10) -> list[ProgressRecord]:
        ranked = sorted(self.rows.values(), key=lambda row: (-row.total_rabbits, -row.day, row.player_id))
        return ranked[: max(0, limit)]

    def runs_for(self, player_id: str) -> list[RunHistoryRow]:
        return [row for row in self.runs if row.player_id == player_id]


@dataclass(slots=True)
class LeaderboardSync:
    backend: LeaderboardBackend
    player_id: str
    player_name: str | None = None
    log: ColonyEventLog | None = None
    metrics: Metrics | None = None
    clock: Callable[[], float] = time.time

    def _failed(self, operation: str, day: int, exc: Exception) -> None:
        if self.metrics is not None:
            self.metrics.inc("sync.failed")
            self.metrics.inc(f"sync.failed.{operation}")
        if self.log is not None:
            self.log.log_sync_failure(day=day, operation=operation, error=f"{type(exc).__name__}: {exc}")

    def _upsert_if_improved(self, record: ProgressRecord) -> bool:
        existing = self.backend.fetch(self.player_id)
        best_so_far = existing.total_rabbits if existing is not None else 0
        if record.total_rabbits <= best_so_far:
            if self.metrics is not None:
                self.metrics.inc("sync.skipped")
            return False
        self.backend.upsert(record)
        if self.metrics is not None:
            self.metrics.inc("sync.upserted")
        return True

    def sync_progress(self, state: ColonyState) -> bool:
        """Publish ``state`` if it beats the stored best.  Returns whether a row was written."""

        record = progress_from_state(state, player_id=self.player_id, player_name=self.player_name, now=self.clock())
        try:
            return self._upsert_if_improved(record)
        except Exception as exc:
            self._failed("sync_progress", state.day, exc)
            return False

    def record_run(self, run: RunRecord, state: ColonyState, history: Sequence[RunRecord] = ()) -> bool:
        """Push the best of ``history`` plus ``run`` and append ``run`` to the run history."""

        best = best_run([*history, run]) or run
        record = progress_from_run(
            best, state, player_id=self.player_id, player_name=self.player_name, now=self.clock()
        )
        ok = True
        try:
            self._upsert_if_improved(record)
        except Exception as exc:
            self._failed("record_run", state.day, exc)
            ok = False
        row = RunHistoryRow(
            player_id=self.player_id,
            run_ended_at=_iso(run.ended_at),
            day=run.day,
            total_coins_earned=run.total_coins_earned,
            rabbits=run.population,
            houses=run.houses,
            achievements=tuple(run.achievements),
        )
        try:
            self.backend.insert_run(row)
        except Exception as exc:
            self._failed("insert_run", state.day, exc)
            ok = False
        return ok

    def rename(self, name: str, state: ColonyState) -> bool:
        """Attach a display name to the player's row, creating it if needed."""

        self.player_name = name
        try:
            existing = self.backend.fetch(self.player_id)
            if existing is None:
                existing = progress_from_state(state, player_id=self.player_id, now=self.clock())
            self.backend.upsert(replace(existing, player_name=name, last_updated=_iso(self.clock())))
            return True
        except Exception as exc:
            self._failed("rename", state.day, exc)
            return False


__all__ = [
    "InMemoryLeaderboard",
    "LeaderboardBackend",
    "LeaderboardSync",
    "ProgressRecord",
    "RunHistoryRow",
    "best_run",
    "progress_from_run",
    "progress_from_state",
]
