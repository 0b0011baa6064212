"""Persistence for colony saves.

Saves are canonical JSON documents written to a small key-value
:class:`SaveStore`.  Each document carries a schema version, the colony state,
the random source's counters and the run history.  Loading is forgiving:
fields missing from an older save take their :func:`~warren.state.new_game`
values, unknown fields are ignored and references to unknown catalog ids are
dropped, so a stale save never prevents the game from starting.
"""

from __future__ import annotations

import gzip
import json
import math
import re
from dataclasses import dataclass, replace
from hashlib import sha256
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Protocol, Sequence

from warren.data.events import RANDOM_EVENTS
from warren.data.shop import SHOP_ITEMS
from warren.runtime.rng_service import RNGService
from warren.state import (
    BASE_CAPACITY_PER_HOUSE,
    Breed,
    ColonyState,
    DailySpend,
    EpidemicState,
    FoodTier,
    Individual,
    RunRecord,
    WaterTier,
    new_game,
)

SNAPSHOT_SCHEMA_VERSION = "colony_save_v1"
SAVE_KEY = "warren.save"

_KNOWN_ITEMS = frozenset(item.item_id for item in SHOP_ITEMS)
_EVENTS_BY_ID = {event.event_id: event for event in RANDOM_EVENTS}
_SEQ_PATTERN = re.compile(r"(\d+)$")


class SaveFormatError(ValueError):
    """Raised when a stored save cannot be read as a colony save."""


class SaveStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore:
    """Key-value store kept in one JSON file; a ``.gz`` suffix enables gzip."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        if self.path.suffix.endswith("gz"):
            with gzip.open(self.path, "rb") as fp:
                raw = fp.read()
        else:
            with open(self.path, "rb") as fp:
                raw = fp.read()
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SaveFormatError(f"{self.path} is not a JSON store") from exc
        if not isinstance(data, dict):
            raise SaveFormatError(f"{self.path} does not hold a key-value mapping")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: Mapping[str, str]) -> None:
        payload = _canonical_dumps(data).encode("utf-8")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.suffix.endswith("gz"):
            with gzip.open(self.path, "wb") as fp:
                fp.write(payload)
        else:
            with open(self.path, "wb") as fp:
                fp.write(payload)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


def _canonical_dumps(data: Mapping[str, Any]) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


# ----------------------------------------------------------------------
# State <-> dict
# ----------------------------------------------------------------------
def state_to_dict(state: ColonyState) -> dict[str, Any]:
    epidemic = state.epidemic
    return {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "day": state.day,
        "population": [{"id": individual.id, "breed": individual.breed.value} for individual in state.population],
        "next_individual_seq": state.next_individual_seq,
        "coins": state.coins,
        "food": state.food,
        "water": state.water,
        "houses": state.houses,
        "food_tier": state.food_tier.value,
        "water_tier": state.water_tier.value,
        "unlocked_achievements": sorted(state.unlocked_achievements),
        "achievement_unlock_day": dict(sorted(state.achievement_unlock_day.items())),
        "owned_upgrades": sorted(state.owned_upgrades),
        "broken_upgrades": sorted(state.broken_upgrades),
        "coin_multiplier": state.coin_multiplier,
        "breeding_bonus_multiplier": state.breeding_bonus_multiplier,
        "food_consumption_multiplier": state.food_consumption_multiplier,
        "water_consumption_multiplier": state.water_consumption_multiplier,
        "capacity_bonus_per_house": state.capacity_bonus_per_house,
        "passive_coins_per_day": state.passive_coins_per_day,
        "passive_food_per_day": state.passive_food_per_day,
        "passive_water_per_day": state.passive_water_per_day,
        "shop_discount_bonus": state.shop_discount_bonus,
        "epidemic": {
            "active": epidemic.active,
            "infected_ids": sorted(epidemic.infected_ids),
            "isolated_ids": sorted(epidemic.isolated_ids),
            "days_remaining": epidemic.days_remaining,
            "isolation_chosen": epidemic.isolation_chosen,
        },
        "survival_count": state.survival_count,
        "total_born": state.total_born,
        "total_coins_earned": state.total_coins_earned,
        "break_count": state.break_count,
        "repair_count": state.repair_count,
        "coins_spent_by_day": [{"day": entry.day, "amount": entry.amount} for entry in state.coins_spent_by_day],
        "last_sale_day": state.last_sale_day,
        "pending_event": state.pending_event.event_id if state.pending_event else None,
    }


_INT_FIELDS = (
    "day",
    "coins",
    "food",
    "water",
    "houses",
    "capacity_bonus_per_house",
    "passive_coins_per_day",
    "passive_food_per_day",
    "passive_water_per_day",
    "survival_count",
    "total_born",
    "total_coins_earned",
    "break_count",
    "repair_count",
    "last_sale_day",
)
# Lowest value a loaded field may take; anything else floors at 0.
_INT_FLOORS = {"day": 1, "houses": 1}
_FLOAT_FIELDS = (
    "coin_multiplier",
    "breeding_bonus_multiplier",
    "food_consumption_multiplier",
    "water_consumption_multiplier",
    "shop_discount_bonus",
)


def _population_from(raw: Sequence[Any]) -> tuple[Individual, ...]:
    population: list[Individual] = []
    seen: set[str] = set()
    for entry in raw:
        if not isinstance(entry, Mapping) or "id" not in entry:
            continue
        ident = str(entry["id"])
        if ident in seen:
            continue
        seen.add(ident)
        try:
            breed = Breed(entry.get("breed", Breed.COMMON.value))
        except ValueError:
            breed = Breed.COMMON
        population.append(Individual(id=ident, breed=breed))
    return tuple(population)


def _next_seq_for(population: Sequence[Individual]) -> int:
    highest = 0
    for individual in population:
        match = _SEQ_PATTERN.search(individual.id)
        if match:
            highest = max(highest, int(match.group(1)))
    return max(highest, len(population)) + 1


def _enum_or(enum_cls, raw: Any, default):
    try:
        return enum_cls(raw)
    except ValueError:
        return default


def _epidemic_from(raw: Mapping[str, Any]) -> EpidemicState:
    if not raw.get("active"):
        return EpidemicState()
    infected = frozenset(str(i) for i in raw.get("infected_ids", ()))
    return EpidemicState(
        active=True,
        infected_ids=infected,
        isolated_ids=frozenset(str(i) for i in raw.get("isolated_ids", ())) & infected,
        days_remaining=int(raw.get("days_remaining", 0)),
        isolation_chosen=bool(raw.get("isolation_chosen", False)),
    )


def state_from_dict(data: Mapping[str, Any]) -> ColonyState:
    """Rebuild a state, filling anything missing from a fresh game."""

    version = data.get("schema_version", SNAPSHOT_SCHEMA_VERSION)
    if version != SNAPSHOT_SCHEMA_VERSION:
        raise SaveFormatError(f"Unsupported save schema: {version!r}")

    base = new_game()
    updates: MutableMapping[str, Any] = {}
    for name in _INT_FIELDS:
        if name in data:
            updates[name] = max(_INT_FLOORS.get(name, 0), int(data[name]))
    for name in _FLOAT_FIELDS:
        if name in data:
            updates[name] = float(data[name])

    if "population" in data:
        updates["population"] = _population_from(data["population"])
    population = updates.get("population", base.population)
    if "next_individual_seq" in data:
        updates["next_individual_seq"] = max(int(data["next_individual_seq"]), _next_seq_for(population))
    elif "population" in data:
        updates["next_individual_seq"] = _next_seq_for(population)

    if "food_tier" in data:
        updates["food_tier"] = _enum_or(FoodTier, data["food_tier"], base.food_tier)
    if "water_tier" in data:
        updates["water_tier"] = _enum_or(WaterTier, data["water_tier"], base.water_tier)
    if "unlocked_achievements" in data:
        updates["unlocked_achievements"] = frozenset(str(a) for a in data["unlocked_achievements"])
    if "achievement_unlock_day" in data:
        updates["achievement_unlock_day"] = {str(k): int(v) for k, v in dict(data["achievement_unlock_day"]).items()}
    if "owned_upgrades" in data:
        updates["owned_upgrades"] = frozenset(str(u) for u in data["owned_upgrades"]) & _KNOWN_ITEMS
    if "broken_upgrades" in data:
        updates["broken_upgrades"] = frozenset(str(u) for u in data["broken_upgrades"]) & _KNOWN_ITEMS
    if "epidemic" in data and isinstance(data["epidemic"], Mapping):
        updates["epidemic"] = _epidemic_from(data["epidemic"])
    if "coins_spent_by_day" in data:
        updates["coins_spent_by_day"] = tuple(
            DailySpend(day=int(entry["day"]), amount=int(entry["amount"])) for entry in data["coins_spent_by_day"]
        )
    if data.get("pending_event"):
        updates["pending_event"] = _EVENTS_BY_ID.get(str(data["pending_event"]))

    state = replace(base, **updates)
    if state.population_size > state.capacity:
        per_house = BASE_CAPACITY_PER_HOUSE + state.capacity_bonus_per_house
        state = replace(state, houses=math.ceil(state.population_size / per_house))
    return replace(state, epidemic=state.epidemic.pruned(state.population_ids()))


def run_record_to_dict(record: RunRecord) -> dict[str, Any]:
    return {
        "day": record.day,
        "total_coins_earned": record.total_coins_earned,
        "ended_at": record.ended_at,
        "population": record.population,
        "houses": record.houses,
        "achievements": list(record.achievements),
    }


def run_record_from_dict(data: Mapping[str, Any]) -> RunRecord:
    return RunRecord(
        day=int(data.get("day", 1)),
        total_coins_earned=int(data.get("total_coins_earned", 0)),
        ended_at=float(data.get("ended_at", 0.0)),
        population=int(data.get("population", 0)),
        houses=int(data.get("houses", 1)),
        achievements=tuple(str(a) for a in data.get("achievements", ())),
    )


# ----------------------------------------------------------------------
# Save / load
# ----------------------------------------------------------------------
@dataclass(slots=True)
class ColonySave:
    state: ColonyState
    rng: RNGService | None = None
    run_history: tuple[RunRecord, ...] = ()
    digest: str = ""


def save_colony(
    store: SaveStore,
    state: ColonyState,
    *,
    rng: RNGService | None = None,
    run_history: Sequence[RunRecord] = (),
    key: str = SAVE_KEY,
) -> str:
    """Write a save document and return its sha256 digest."""

    document = {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "state": state_to_dict(state),
        "rng": rng.to_dict() if rng is not None else None,
        "run_history": [run_record_to_dict(record) for record in run_history],
    }
    payload = _canonical_dumps(document)
    store.set(key, payload)
    return sha256(payload.encode("utf-8")).hexdigest()


def load_colony(store: SaveStore, *, key: str = SAVE_KEY) -> ColonySave | None:
    """Read the save under ``key``; ``None`` when nothing has been saved."""

    payload = store.get(key)
    if payload is None:
        return None
    try:
        document = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise SaveFormatError("Save document is not valid JSON") from exc
    if not isinstance(document, Mapping):
        raise SaveFormatError("Save document must be a JSON object")
    version = document.get("schema_version", SNAPSHOT_SCHEMA_VERSION)
    if version != SNAPSHOT_SCHEMA_VERSION:
        raise SaveFormatError(f"Unsupported save schema: {version!r}")

    raw_rng = document.get("rng")
    return ColonySave(
        state=state_from_dict(document.get("state") or {}),
        rng=RNGService.from_dict(raw_rng) if isinstance(raw_rng, Mapping) else None,
        run_history=tuple(run_record_from_dict(entry) for entry in document.get("run_history", ())),
        digest=sha256(payload.encode("utf-8")).hexdigest(),
    )


def state_signature(state: ColonyState) -> str:
    return sha256(_canonical_dumps(state_to_dict(state)).encode("utf-8")).hexdigest()


__all__ = [
    "ColonySave",
    "JsonFileStore",
    "MemoryStore",
    "SAVE_KEY",
    "SNAPSHOT_SCHEMA_VERSION",
    "SaveFormatError",
    "SaveStore",
    "load_colony",
    "run_record_from_dict",
    "run_record_to_dict",
    "save_colony",
    "state_from_dict",
    "state_signature",
    "state_to_dict",
]
