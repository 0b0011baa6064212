"""Colony session: the mutable shell around the pure runtime.

A :class:`ColonySession` owns the current :class:`~warren.state.ColonyState`
together with everything the pure reducers deliberately leave out: the random
source, configuration, event log, telemetry, the save store, the leaderboard
sync and the run history.  Every public method applies one runtime operation,
records what happened, persists the result and returns the runtime's outcome
object unchanged.
"""

from __future__ import annotations

import time
import uuid
from typing import Callable, Iterable, Sequence

from warren.admin_log import ColonyEventLog, ColonyLogEvent
from warren.data.shop import ShopItem, get_item
from warren.runtime.config import DEFAULT_CONFIG, ColonyConfig
from warren.runtime.day_engine import DayOutcome, advance_day
from warren.runtime.epidemic import choose_cure, choose_isolate, cure_cost
from warren.runtime.leaderboard import LeaderboardBackend, LeaderboardSync
from warren.runtime.player_id import get_or_create_player_id, get_player_name, set_player_name
from warren.runtime.pricing import price
from warren.runtime.rejections import Rejection
from warren.runtime.rng_service import RandomSource, RNGService
from warren.runtime.shop import PurchaseOutcome, SaleOutcome, dismiss_event, purchase, sell_population
from warren.runtime.snapshot import SAVE_KEY, SaveStore, load_colony, save_colony
from warren.runtime.telemetry import Metrics
from warren.state import ColonyState, RunRecord, new_game


class ColonySession:
    def __init__(
        self,
        state: ColonyState | None = None,
        *,
        rng: RandomSource | None = None,
        seed: int = 0,
        config: ColonyConfig | None = None,
        store: SaveStore | None = None,
        save_key: str = SAVE_KEY,
        leaderboard: LeaderboardBackend | None = None,
        log: ColonyEventLog | None = None,
        metrics: Metrics | None = None,
        run_history: Sequence[RunRecord] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.state = state if state is not None else new_game()
        self.rng: RandomSource = rng if rng is not None else RNGService(seed=seed)
        self.config = config or DEFAULT_CONFIG
        self.store = store
        self.save_key = save_key
        self.log = log or ColonyEventLog()
        self.metrics = metrics or Metrics()
        self.run_history: list[RunRecord] = list(run_history)
        self.clock = clock
        self.player_id = get_or_create_player_id(store) if store is not None else str(uuid.uuid4())
        self.sync: LeaderboardSync | None = None
        if leaderboard is not None:
            self.sync = LeaderboardSync(
                backend=leaderboard,
                player_id=self.player_id,
                player_name=get_player_name(store) if store is not None else None,
                log=self.log,
                metrics=self.metrics,
                clock=clock,
            )
        self._update_gauges()

    @classmethod
    def load(
        cls,
        store: SaveStore,
        *,
        seed: int = 0,
        save_key: str = SAVE_KEY,
        **kwargs,
    ) -> "ColonySession":
        """Resume the save in ``store``, or start a fresh colony when there is none."""

        saved = load_colony(store, key=save_key)
        if saved is None:
            return cls(seed=seed, store=store, save_key=save_key, **kwargs)
        return cls(
            saved.state,
            rng=saved.rng or RNGService(seed=seed),
            store=store,
            save_key=save_key,
            run_history=saved.run_history,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def subscribe(
        self, callback: Callable[[ColonyLogEvent], None], *, event_types: Iterable[str] | None = None
    ) -> Callable[[], None]:
        return self.log.subscribe(callback, event_types=event_types)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    @property
    def is_game_over(self) -> bool:
        return self.state.is_extinct

    def quote(self, item_id: str, quantity: int = 1) -> int:
        return price(self.state, get_item(item_id), quantity, self.rng, config=self.config)

    def advance_day(self) -> DayOutcome:
        before = self.state
        outcome = advance_day(before, self.rng, config=self.config)
        self.state = outcome.state
        day = self.state.day
        self.metrics.inc("days.advanced")
        self.metrics.inc("births", outcome.births)

        if outcome.event is not None:
            event = outcome.event
            self.metrics.inc(f"events.{event.event_id}")
            self.log.log_event_drawn(
                day=day, event_id=event.event_id, name=event.name, tone=event.tone, rarity=event.rarity
            )
        if outcome.epidemic_resolved:
            self.log.log_epidemic(day=day, phase="resolved", lost=outcome.lost_to_epidemic)
        if outcome.epidemic_started:
            self.metrics.inc("epidemic.started")
            self.log.log_epidemic(day=day, phase="started", infected=len(self.state.epidemic.infected_ids))
        if outcome.broken_upgrade is not None:
            self.metrics.inc("upgrades.broken")
            self.log.log_breakage(day=day, upgrade_id=outcome.broken_upgrade)
        self.log.log_day(
            day=day,
            coins_earned=outcome.coins_earned,
            births=outcome.births,
            population=self.state.population_size,
            coins=self.state.coins,
            food=self.state.food,
            water=self.state.water,
        )
        self._announce(outcome.new_achievements)
        self._commit()
        return outcome

    def purchase(self, item: ShopItem | str, quantity: int = 1) -> PurchaseOutcome:
        shop_item = get_item(item) if isinstance(item, str) else item
        outcome = purchase(self.state, shop_item, quantity, self.rng, config=self.config)
        if outcome.rejection is not None:
            self._rejected("purchase", outcome.rejection)
            return outcome
        self.state = outcome.state
        self.metrics.inc("purchases")
        self.metrics.inc("coins.spent", outcome.price)
        if outcome.repaired:
            self.metrics.inc("upgrades.repaired")
        self.log.log_purchase(
            day=self.state.day,
            item_id=outcome.item_id,
            quantity=outcome.quantity,
            price=outcome.price,
            repaired=outcome.repaired,
        )
        self._announce(outcome.new_achievements)
        self._commit()
        return outcome

    def sell(self) -> SaleOutcome:
        outcome = sell_population(self.state, self.rng, config=self.config)
        if outcome.rejection is not None:
            self._rejected("sell", outcome.rejection)
            return outcome
        self.state = outcome.state
        self.metrics.inc("sales")
        self.metrics.inc("rabbits.sold", outcome.sold)
        self.log.log_sale(day=self.state.day, sold=outcome.sold, coins=outcome.coins)
        self._commit()
        return outcome

    def isolate(self) -> ColonyState:
        if not self.state.epidemic.active:
            return self.state
        self.state = choose_isolate(self.state)
        self.log.log_epidemic(day=self.state.day, phase="isolated", isolated=len(self.state.epidemic.isolated_ids))
        self._commit()
        return self.state

    def cure(self, cost_fraction: float | None = None) -> ColonyState:
        if not self.state.epidemic.active:
            return self.state
        fraction = self.config.cure_cost_fraction if cost_fraction is None else cost_fraction
        cost = cure_cost(self.state.coins, fraction)
        self.state = choose_cure(self.state, fraction, config=self.config)
        self.metrics.inc("epidemic.cured")
        self.log.log_epidemic(day=self.state.day, phase="cured", cost=cost)
        self._commit()
        return self.state

    def dismiss_event(self) -> ColonyState:
        self.state = dismiss_event(self.state)
        self._commit(sync=False)
        return self.state

    def end_run(self) -> RunRecord:
        """Archive the current run and start a fresh colony.

        Used on game over (and for a voluntary reset).  The best archived run
        is pushed to the leaderboard and the finished run is appended to the
        remote run history.
        """

        finished = self.state
        record = RunRecord(
            day=finished.day,
            total_coins_earned=finished.total_coins_earned,
            ended_at=self.clock(),
            population=finished.population_size,
            houses=finished.houses,
            achievements=tuple(sorted(finished.unlocked_achievements)),
        )
        previous = tuple(self.run_history)
        self.run_history.append(record)
        self.metrics.inc("runs.ended")
        self.metrics.topk_add("runs.best_day", f"run-{len(self.run_history)}", record.day, {"population": record.population})
        self.log.log_run_ended(
            day=record.day, population=record.population, total_coins_earned=record.total_coins_earned
        )
        if self.sync is not None:
            self.sync.record_run(record, finished, previous)
        self.state = new_game()
        self._commit(sync=False)
        return record

    def rename(self, name: str) -> bool:
        """Store the display name locally and push it to the leaderboard."""

        if self.store is not None:
            name = set_player_name(self.store, name)
        if self.sync is None:
            return False
        return self.sync.rename(name, self.state)

    def save(self) -> str | None:
        if self.store is None:
            return None
        rng = self.rng if isinstance(self.rng, RNGService) else None
        digest = save_colony(self.store, self.state, rng=rng, run_history=self.run_history, key=self.save_key)
        self.metrics.set_gauge("save.digest", digest[:16])
        return digest

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _rejected(self, operation: str, rejection: Rejection) -> None:
        self.metrics.inc(f"{operation}.rejected.{rejection.reason.value}")
        self.log.log_rejection(
            day=self.state.day, operation=operation, reason=rejection.reason.value, message=rejection.message
        )

    def _announce(self, achievement_ids: Sequence[str]) -> None:
        for achievement_id in achievement_ids:
            self.metrics.inc("achievements.unlocked")
            self.log.log_achievement(day=self.state.day, achievement_id=achievement_id)

    def _update_gauges(self) -> None:
        self.metrics.set_gauge("colony.day", self.state.day)
        self.metrics.set_gauge("colony.population", self.state.population_size)
        self.metrics.set_gauge("colony.coins", self.state.coins)
        if isinstance(self.rng, RNGService):
            self.metrics.set_gauge("rng.signature", self.rng.signature())
            self.metrics.set_gauge("rng.busiest_streams", self.rng.audit_summary()[:5])

    def _commit(self, *, sync: bool = True) -> None:
        self._update_gauges()
        self.save()
        if sync and self.sync is not None:
            self.sync.sync_progress(self.state)


__all__ = ["ColonySession"]
