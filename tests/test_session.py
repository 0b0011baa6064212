from __future__ import annotations

from dataclasses import replace

from warren.admin_log import ACHIEVEMENT_UNLOCKED, EPIDEMIC, REJECTED, RUN_ENDED
from warren.runtime.leaderboard import InMemoryLeaderboard
from warren.runtime.player_id import PLAYER_ID_KEY, get_player_name
from warren.runtime.snapshot import MemoryStore, load_colony
from warren.session import ColonySession
from warren.state import EpidemicState, Individual, new_game


def _infected_state(coins: int = 100):
    population = tuple(Individual(f"rabbit:{i}") for i in range(1, 6))
    epidemic = EpidemicState(active=True, infected_ids=frozenset({"rabbit:1", "rabbit:2"}), days_remaining=9)
    return replace(new_game(), population=population, next_individual_seq=6, houses=2, coins=coins, epidemic=epidemic)


def test_advance_records_and_saves(scripted) -> None:
    store = MemoryStore()
    session = ColonySession(rng=scripted, store=store)
    seen = []
    session.subscribe(seen.append, event_types=[ACHIEVEMENT_UNLOCKED])

    outcome = session.advance_day()

    assert outcome.state is session.state
    assert session.state.day == 2
    assert session.metrics.get("days.advanced") == 1
    assert session.metrics.gauges["colony.day"] == 2
    assert [event.payload["achievement_id"] for event in seen] == ["first-rabbit"]
    assert load_colony(store).state == session.state


def test_rejections_are_counted_and_leave_state(scripted) -> None:
    session = ColonySession(rng=scripted)
    before = session.state

    outcome = session.purchase("lettuce-upgrade")
    sale = session.sell()

    assert not outcome.accepted and not sale.accepted
    assert session.state is before
    assert session.metrics.get("purchase.rejected.insufficient_funds") == 1
    assert session.metrics.get("sell.rejected.not_sale_window") == 1
    reasons = [event.payload["reason"] for event in session.log.get_recent(event_type=REJECTED)]
    assert reasons == ["insufficient_funds", "not_sale_window"]


def test_purchase_by_id(scripted) -> None:
    session = ColonySession(rng=scripted)

    outcome = session.purchase("hay-bale", 1)

    assert outcome.accepted
    assert session.state.food == 60
    assert session.metrics.get("coins.spent") == 35


def test_cure_and_isolate_log_phases(scripted) -> None:
    session = ColonySession(_infected_state(), rng=scripted)
    session.isolate()
    assert session.state.epidemic.isolation_chosen

    session.cure()

    assert session.state.coins == 30
    assert not session.state.epidemic.active
    phases = [event.payload["phase"] for event in session.log.get_recent(event_type=EPIDEMIC)]
    assert phases == ["isolated", "cured"]
    assert session.log.get_recent(event_type=EPIDEMIC)[-1].payload["cost"] == 70


def test_choices_without_outbreak_do_nothing(scripted) -> None:
    session = ColonySession(rng=scripted)
    state = session.state

    assert session.isolate() is state
    assert session.cure() is state
    assert session.log.get_recent(event_type=EPIDEMIC) == []


def test_player_id_survives_new_sessions() -> None:
    store = MemoryStore()
    first = ColonySession(store=store)
    second = ColonySession(store=store)

    assert first.player_id == second.player_id == store.get(PLAYER_ID_KEY)


def test_progress_is_synced_after_each_operation(scripted) -> None:
    board = InMemoryLeaderboard()
    session = ColonySession(rng=scripted, store=MemoryStore(), leaderboard=board)

    session.advance_day()

    row = board.fetch(session.player_id)
    assert row.total_rabbits == 1
    assert row.day == 2


def test_end_run_archives_and_restarts(scripted) -> None:
    store = MemoryStore()
    board = InMemoryLeaderboard()
    session = ColonySession(rng=scripted, store=store, leaderboard=board, clock=lambda: 100.0)
    for _ in range(3):
        session.advance_day()

    record = session.end_run()

    assert record.day == 4
    assert record.population == 1
    assert record.ended_at == 100.0
    assert session.state == new_game()
    assert session.run_history == [record]
    assert len(board.runs_for(session.player_id)) == 1
    assert session.log.get_recent(event_type=RUN_ENDED)[0].payload["population"] == 1
    assert list(ColonySession.load(store).run_history) == [record]


def test_loaded_session_continues_identically() -> None:
    store = MemoryStore()
    live = ColonySession(replace(new_game(), houses=3, coins=500), seed=5, store=store)
    for _ in range(10):
        live.advance_day()

    resumed = ColonySession.load(MemoryStore({key: store.get(key) for key in store.keys()}))
    for _ in range(10):
        live.advance_day()
        resumed.advance_day()

    assert resumed.state == live.state


def test_game_over_when_colony_is_empty() -> None:
    session = ColonySession(replace(new_game(), population=()))
    assert session.is_game_over


def test_dismiss_event_clears_pending(scripted) -> None:
    scripted.script("event:roll", 0.0).script("event:rarity", 0.1).script("event:pick", "peaceful-day")
    session = ColonySession(rng=scripted)
    session.advance_day()
    assert session.state.pending_event is not None

    assert session.dismiss_event().pending_event is None


def test_rename_stores_name_and_syncs() -> None:
    store = MemoryStore()
    board = InMemoryLeaderboard()
    session = ColonySession(store=store, leaderboard=board)

    assert session.rename("  Clover ")

    assert get_player_name(store) == "Clover"
    assert board.fetch(session.player_id).player_name == "Clover"
    assert ColonySession(store=store, leaderboard=board).sync.player_name == "Clover"


def test_rename_without_leaderboard_keeps_local_name() -> None:
    store = MemoryStore()
    assert not ColonySession(store=store).rename("Thumper")
    assert get_player_name(store) == "Thumper"


def test_rng_position_is_reported_in_gauges() -> None:
    session = ColonySession(seed=3)
    session.advance_day()
    session.advance_day()

    assert session.metrics.gauges["rng.signature"] == session.rng.signature()
    busiest = session.metrics.gauges["rng.busiest_streams"]
    assert busiest == session.rng.audit_summary()[:5]
    assert busiest[0][1] >= busiest[-1][1] > 0

    fresh = ColonySession(seed=3)
    assert fresh.metrics.gauges["rng.signature"] != session.metrics.gauges["rng.signature"]
