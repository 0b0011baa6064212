from __future__ import annotations

from dataclasses import replace

from warren.admin_log import SYNC_FAILED, ColonyEventLog
from warren.runtime.leaderboard import (
    InMemoryLeaderboard,
    LeaderboardSync,
    ProgressRecord,
    best_run,
    progress_from_run,
    progress_from_state,
)
from warren.runtime.telemetry import Metrics
from warren.state import Breed, Individual, RunRecord, new_game


class BrokenBackend:
    def fetch(self, player_id):
        raise ConnectionError("leaderboard offline")

    def upsert(self, record):
        raise ConnectionError("leaderboard offline")

    def insert_run(self, row):
        raise ConnectionError("leaderboard offline")


def _colony(*breeds):
    population = tuple(Individual(f"rabbit:{i}", breed) for i, breed in enumerate(breeds, start=1))
    return replace(new_game(), population=population, next_individual_seq=len(breeds) + 1, houses=2)


def _sync(backend=None, **kwargs):
    return LeaderboardSync(backend=backend or InMemoryLeaderboard(), player_id="p-1", clock=lambda: 0.0, **kwargs)


def test_progress_counts_breeds() -> None:
    state = _colony(Breed.COMMON, Breed.RARE, Breed.RARE, Breed.LEGENDARY)

    record = progress_from_state(state, player_id="p-1", now=0.0)

    assert (record.rabbits_common, record.rabbits_rare, record.rabbits_legendary) == (1, 2, 1)
    assert record.total_rabbits == 4
    assert record.house_capacity == 8
    assert record.last_updated == "1970-01-01T00:00:00+00:00"
    assert "player_name" not in record.to_dict()


def test_sync_only_writes_improvements() -> None:
    board = InMemoryLeaderboard()
    sync = _sync(board, metrics=Metrics())

    assert sync.sync_progress(_colony(Breed.COMMON, Breed.COMMON))
    assert not sync.sync_progress(_colony(Breed.COMMON, Breed.COMMON))
    assert not sync.sync_progress(_colony(Breed.COMMON))
    assert sync.sync_progress(_colony(Breed.COMMON, Breed.RARE, Breed.RARE))

    assert board.fetch("p-1").total_rabbits == 3
    assert sync.metrics.get("sync.upserted") == 2
    assert sync.metrics.get("sync.skipped") == 2


def test_empty_colony_is_never_published() -> None:
    board = InMemoryLeaderboard()
    assert not _sync(board).sync_progress(_colony())
    assert board.fetch("p-1") is None


def test_record_run_pushes_best_run_and_appends_history() -> None:
    board = InMemoryLeaderboard()
    sync = _sync(board)
    history = (RunRecord(day=90, total_coins_earned=4_000, ended_at=0.0, population=15, houses=4),)
    finished = RunRecord(day=30, total_coins_earned=800, ended_at=60.0, population=6, houses=2)

    assert sync.record_run(finished, new_game(), history)

    row = board.fetch("p-1")
    assert row.day == 90
    assert row.rabbits_common == 15
    assert row.house_capacity == 16
    assert [run.day for run in board.runs_for("p-1")] == [30]
    assert board.runs_for("p-1")[0].run_ended_at == "1970-01-01T00:01:00+00:00"


def test_best_run_prefers_population_then_earliest() -> None:
    a = RunRecord(day=10, total_coins_earned=0, ended_at=0.0, population=5, houses=1)
    b = RunRecord(day=20, total_coins_earned=0, ended_at=1.0, population=5, houses=1)
    c = RunRecord(day=5, total_coins_earned=0, ended_at=2.0, population=7, houses=2)
    assert best_run([a, b]) is a
    assert best_run([a, b, c]) is c
    assert best_run([]) is None


def test_run_row_uses_current_capacity_bonus() -> None:
    run = RunRecord(day=10, total_coins_earned=0, ended_at=0.0, population=5, houses=3)
    state = replace(new_game(), capacity_bonus_per_house=2)

    assert progress_from_run(run, state, player_id="p-1", now=0.0).house_capacity == 18


def test_rename_keeps_name_on_later_syncs() -> None:
    board = InMemoryLeaderboard()
    sync = _sync(board)

    assert sync.rename("Clover", new_game())
    assert board.fetch("p-1").player_name == "Clover"

    sync.player_name = None
    sync.sync_progress(_colony(Breed.COMMON, Breed.COMMON, Breed.COMMON))
    assert board.fetch("p-1").player_name == "Clover"


def test_backend_failures_are_logged_not_raised() -> None:
    log = ColonyEventLog()
    metrics = Metrics()
    sync = _sync(BrokenBackend(), log=log, metrics=metrics)
    run = RunRecord(day=3, total_coins_earned=0, ended_at=0.0, population=1, houses=1)

    assert not sync.sync_progress(new_game())
    assert not sync.record_run(run, new_game())
    assert not sync.rename("Clover", new_game())

    failures = log.get_recent(event_type=SYNC_FAILED)
    assert [event.payload["operation"] for event in failures] == ["sync_progress", "record_run", "insert_run", "rename"]
    assert "ConnectionError" in failures[0].payload["error"]
    assert metrics.get("sync.failed") == 4
    assert metrics.get("sync.failed.record_run") == 1


def test_leaderboard_ranks_by_total_rabbits() -> None:
    board = InMemoryLeaderboard()
    board.upsert(ProgressRecord(player_id="a", rabbits_common=3, day=50))
    board.upsert(ProgressRecord(player_id="b", rabbits_rare=5, day=10))
    board.upsert(ProgressRecord(player_id="c", rabbits_common=3, day=80))

    assert [row.player_id for row in board.top()] == ["b", "c", "a"]
    assert [row.player_id for row in board.top(limit=1)] == ["b"]
