"""Structured colony state for the Warren simulation.

Dataclasses hold the whole game as a single immutable value.  Every public
operation in :mod:`warren.runtime` takes a :class:`ColonyState` and returns a
new one built with :func:`dataclasses.replace`; nothing is mutated in place,
so a caller can keep the previous value around for undo, replay or tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping

if TYPE_CHECKING:
    from .data.events import GameEvent


class Breed(str, Enum):
    COMMON = "common"
    RARE = "rare"
    LEGENDARY = "legendary"


class FoodTier(str, Enum):
    CARROTS = "carrots"
    LETTUCE = "lettuce"
    PELLETS = "pellets"

    @property
    def rank(self) -> int:
        return _FOOD_RANK[self]

    def step_down(self) -> "FoodTier":
        """Return the tier one step below, or ``self`` when already at the bottom."""

        order = list(FoodTier)
        return order[max(0, self.rank - 1)]


_FOOD_RANK = {FoodTier.CARROTS: 0, FoodTier.LETTUCE: 1, FoodTier.PELLETS: 2}


class WaterTier(str, Enum):
    NORMAL = "normal"
    PURIFIED = "purified"


BASE_CAPACITY_PER_HOUSE = 4


@dataclass(frozen=True, slots=True)
class Individual:
    id: str
    breed: Breed = Breed.COMMON


@dataclass(frozen=True, slots=True)
class DailySpend:
    day: int
    amount: int


@dataclass(frozen=True, slots=True)
class EpidemicState:
    """Rabbit fever sub-state.  ``active=False`` is the dormant state."""

    active: bool = False
    infected_ids: frozenset[str] = frozenset()
    isolated_ids: frozenset[str] = frozenset()
    days_remaining: int = 0
    isolation_chosen: bool = False

    def pruned(self, alive_ids: Iterable[str]) -> "EpidemicState":
        """Drop references to individuals that are no longer in the colony."""

        if not self.active:
            return self
        alive = frozenset(alive_ids)
        infected = self.infected_ids & alive
        isolated = self.isolated_ids & infected
        if not infected:
            return EpidemicState()
        return replace(self, infected_ids=infected, isolated_ids=isolated)


DORMANT = EpidemicState()


@dataclass(frozen=True, slots=True)
class RunRecord:
    """Summary of a finished run, archived when a colony dies out or is reset."""

    day: int
    total_coins_earned: int
    ended_at: float
    population: int
    houses: int
    achievements: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ColonyState:
    day: int = 1
    population: tuple[Individual, ...] = ()
    next_individual_seq: int = 1
    coins: int = 50
    food: int = 10
    water: int = 10
    houses: int = 1
    food_tier: FoodTier = FoodTier.CARROTS
    water_tier: WaterTier = WaterTier.NORMAL

    unlocked_achievements: frozenset[str] = frozenset()
    achievement_unlock_day: Mapping[str, int] = field(default_factory=dict)

    owned_upgrades: frozenset[str] = frozenset()
    broken_upgrades: frozenset[str] = frozenset()

    # Upgrade effect accumulators
    coin_multiplier: float = 1.0
    breeding_bonus_multiplier: float = 1.0
    food_consumption_multiplier: float = 1.0
    water_consumption_multiplier: float = 1.0
    capacity_bonus_per_house: int = 0
    passive_coins_per_day: int = 0
    passive_food_per_day: int = 0
    passive_water_per_day: int = 0
    shop_discount_bonus: float = 0.0

    epidemic: EpidemicState = DORMANT
    survival_count: int = 0

    total_born: int = 0
    total_coins_earned: int = 0
    break_count: int = 0
    repair_count: int = 0
    coins_spent_by_day: tuple[DailySpend, ...] = ()
    last_sale_day: int = 0

    pending_event: "GameEvent | None" = None

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def capacity(self) -> int:
        return self.houses * (BASE_CAPACITY_PER_HOUSE + self.capacity_bonus_per_house)

    @property
    def population_size(self) -> int:
        return len(self.population)

    @property
    def is_extinct(self) -> bool:
        return not self.population

    def population_ids(self) -> frozenset[str]:
        return frozenset(individual.id for individual in self.population)

    def breed_counts(self) -> dict[Breed, int]:
        counts = {breed: 0 for breed in Breed}
        for individual in self.population:
            counts[individual.breed] += 1
        return counts

    def spent_on(self, day: int) -> int:
        for entry in self.coins_spent_by_day:
            if entry.day == day:
                return entry.amount
        return 0


def spawn_individuals(
    state: ColonyState, breeds: Iterable[Breed]
) -> tuple[tuple[Individual, ...], int]:
    """Create individuals with fresh ids drawn from the state's sequence.

    Returns the new individuals and the next free sequence number; the caller
    folds both back into the state.
    """

    seq = state.next_individual_seq
    born: list[Individual] = []
    for breed in breeds:
        born.append(Individual(id=f"rabbit:{seq}", breed=breed))
        seq += 1
    return tuple(born), seq


def record_spend(spends: tuple[DailySpend, ...], *, day: int, amount: int) -> tuple[DailySpend, ...]:
    """Accumulate ``amount`` into the entry for ``day``, appending one if needed."""

    updated = list(spends)
    for idx, entry in enumerate(updated):
        if entry.day == day:
            updated[idx] = DailySpend(day=day, amount=entry.amount + amount)
            return tuple(updated)
    updated.append(DailySpend(day=day, amount=amount))
    return tuple(updated)


def new_game() -> ColonyState:
    """Return the fixed starting colony: one common rabbit, 50 coins, day 1."""

    seed = ColonyState()
    founders, next_seq = spawn_individuals(seed, [Breed.COMMON])
    return replace(seed, population=founders, next_individual_seq=next_seq)


__all__ = [
    "BASE_CAPACITY_PER_HOUSE",
    "Breed",
    "ColonyState",
    "DORMANT",
    "DailySpend",
    "EpidemicState",
    "FoodTier",
    "Individual",
    "RunRecord",
    "WaterTier",
    "new_game",
    "record_spend",
    "spawn_individuals",
]
