"""Colony event log.

A bounded, side-effect free record of what happened to the colony (days,
purchases, rejections, breakdowns, outbreaks, sync failures) so the CLI, tests
or any other host can ask "what just happened" without diffing states.

Hosts that want live notifications (achievement pop-ups, event banners)
subscribe a callback instead of registering a global hook; the log calls every
matching subscriber synchronously when a record is appended.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Tuple

DAY_ADVANCED = "DAY_ADVANCED"
EVENT_DRAWN = "EVENT_DRAWN"
PURCHASE = "PURCHASE"
REJECTED = "REJECTED"
SALE = "SALE"
UPGRADE_BROKEN = "UPGRADE_BROKEN"
EPIDEMIC = "EPIDEMIC"
ACHIEVEMENT_UNLOCKED = "ACHIEVEMENT_UNLOCKED"
RUN_ENDED = "RUN_ENDED"
SYNC_FAILED = "SYNC_FAILED"


@dataclass(slots=True)
class ColonyLogEvent:
    """Structured record for a single colony event."""

    day: int
    event_type: str
    payload: MutableMapping[str, Any]
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def summary(self) -> str:
        if self.event_type == DAY_ADVANCED:
            return (
                f"day {self.payload.get('day', '?')}: +{self.payload.get('coins_earned', 0)} coins, "
                f"{self.payload.get('births', 0)} born, {self.payload.get('population', 0)} rabbits"
            )
        if self.event_type == PURCHASE:
            return f"{self.payload.get('item_id', '?')} x{self.payload.get('quantity', 1)} for {self.payload.get('price', 0)}"
        if self.event_type == REJECTED:
            return f"{self.payload.get('operation', '?')}: {self.payload.get('message') or self.payload.get('reason')}"
        if self.event_type == EVENT_DRAWN:
            return str(self.payload.get("name", self.payload.get("event_id", "?")))
        return ", ".join(f"{k}={v}" for k, v in sorted(self.payload.items()))


Subscriber = Callable[[ColonyLogEvent], None]


class ColonyEventLog:
    """Fixed-size event history with optional subscribers."""

    def __init__(self, capacity: int = 1_000) -> None:
        self.capacity = max(1, capacity)
        self._events: Deque[ColonyLogEvent] = deque(maxlen=self.capacity)
        self._subscribers: List[Tuple[Subscriber, Optional[frozenset[str]]]] = []

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber, *, event_types: Iterable[str] | None = None) -> Callable[[], None]:
        """Call ``callback`` for every new record (or only ``event_types``).

        Returns a function that removes the subscription.
        """

        entry = (callback, frozenset(event_types) if event_types is not None else None)
        self._subscribers.append(entry)

        def _unsubscribe() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return _unsubscribe

    def _notify(self, event: ColonyLogEvent) -> None:
        for callback, types in list(self._subscribers):
            if types is None or event.event_type in types:
                callback(event)

    # ------------------------------------------------------------------
    # Recording helpers
    # ------------------------------------------------------------------
    def record(
        self,
        *,
        day: int,
        event_type: str,
        payload: Mapping[str, Any],
        tags: Sequence[str] = (),
    ) -> ColonyLogEvent:
        event = ColonyLogEvent(day=day, event_type=event_type, payload=dict(payload), tags=tuple(tags))
        self._events.append(event)
        self._notify(event)
        return event

    def log_day(
        self,
        *,
        day: int,
        coins_earned: int,
        births: int,
        population: int,
        coins: int,
        food: int,
        water: int,
    ) -> ColonyLogEvent:
        payload = {
            "day": day,
            "coins_earned": coins_earned,
            "births": births,
            "population": population,
            "coins": coins,
            "food": food,
            "water": water,
        }
        tags = ["starving"] if food == 0 or water == 0 else []
        return self.record(day=day, event_type=DAY_ADVANCED, payload=payload, tags=tags)

    def log_event_drawn(self, *, day: int, event_id: str, name: str, tone: str, rarity: str) -> ColonyLogEvent:
        return self.record(
            day=day,
            event_type=EVENT_DRAWN,
            payload={"event_id": event_id, "name": name, "tone": tone, "rarity": rarity},
            tags=[tone, rarity],
        )

    def log_purchase(
        self, *, day: int, item_id: str, quantity: int, price: int, repaired: bool = False
    ) -> ColonyLogEvent:
        payload: MutableMapping[str, Any] = {"item_id": item_id, "quantity": quantity, "price": price}
        tags = []
        if repaired:
            payload["repaired"] = True
            tags.append("repair")
        return self.record(day=day, event_type=PURCHASE, payload=payload, tags=tags)

    def log_rejection(self, *, day: int, operation: str, reason: str, message: str = "") -> ColonyLogEvent:
        return self.record(
            day=day,
            event_type=REJECTED,
            payload={"operation": operation, "reason": reason, "message": message},
            tags=[reason],
        )

    def log_sale(self, *, day: int, sold: int, coins: int) -> ColonyLogEvent:
        return self.record(day=day, event_type=SALE, payload={"sold": sold, "coins": coins})

    def log_breakage(self, *, day: int, upgrade_id: str) -> ColonyLogEvent:
        return self.record(day=day, event_type=UPGRADE_BROKEN, payload={"upgrade_id": upgrade_id}, tags=[upgrade_id])

    def log_epidemic(self, *, day: int, phase: str, **details: Any) -> ColonyLogEvent:
        """``phase`` is one of ``started``, ``isolated``, ``cured`` or ``resolved``."""

        return self.record(day=day, event_type=EPIDEMIC, payload={"phase": phase, **details}, tags=[phase])

    def log_achievement(self, *, day: int, achievement_id: str) -> ColonyLogEvent:
        return self.record(
            day=day, event_type=ACHIEVEMENT_UNLOCKED, payload={"achievement_id": achievement_id}
        )

    def log_run_ended(self, *, day: int, population: int, total_coins_earned: int) -> ColonyLogEvent:
        return self.record(
            day=day,
            event_type=RUN_ENDED,
            payload={"population": population, "total_coins_earned": total_coins_earned},
        )

    def log_sync_failure(self, *, day: int, operation: str, error: str) -> ColonyLogEvent:
        return self.record(
            day=day,
            event_type=SYNC_FAILED,
            payload={"operation": operation, "error": error},
            tags=[operation],
        )

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._events)

    def get_recent(
        self,
        *,
        event_type: Optional[str] = None,
        tag: Optional[str] = None,
        limit: int = 100,
    ) -> List[ColonyLogEvent]:
        """Return the newest events matching the optional filters, oldest first."""

        selected: List[ColonyLogEvent] = []
        for event in reversed(self._events):
            if event_type and event.event_type != event_type:
                continue
            if tag and tag not in event.tags:
                continue
            selected.append(event)
            if len(selected) >= limit:
                break
        return list(reversed(selected))

    def iter_all(self) -> Iterable[ColonyLogEvent]:
        return tuple(self._events)

    def clear(self) -> None:
        self._events.clear()


__all__ = [
    "ACHIEVEMENT_UNLOCKED",
    "ColonyEventLog",
    "ColonyLogEvent",
    "DAY_ADVANCED",
    "EPIDEMIC",
    "EVENT_DRAWN",
    "PURCHASE",
    "REJECTED",
    "RUN_ENDED",
    "SALE",
    "SYNC_FAILED",
    "Subscriber",
    "UPGRADE_BROKEN",
]
