"""Day advancement: the single state transition that moves the colony forward.

:func:`advance_day` is a pure reducer.  It reads the previous
:class:`~warren.state.ColonyState`, pulls every random decision from the
injected :class:`~warren.runtime.rng_service.RandomSource` under a named
stream key and returns a :class:`DayOutcome` carrying the new state plus what
happened along the way.  Nothing is logged or persisted here; the session does
that from the outcome.

Order of a day:

1. roll today's event and drop it if it cannot happen (fever on top of fever,
   fever or predators against a colony under four);
2. tick an active epidemic, removing the infected if it expires;
3. consumption against the post-epidemic population, with the fever water
   penalty judged on the start-of-day epidemic;
4. earnings;
5. breeding;
6. event effects (resources, wandering rabbits, fever outbreak, predators);
7. the daily upgrade breakdown check;
8. resources, counters and the day number are folded in;
9. infection references are pruned and achievements re-evaluated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from warren.data.breeds import breed_spec
from warren.data.events import GameEvent
from warren.runtime import epidemic as epidemic_sm
from warren.runtime.achievements import apply_unlocks
from warren.runtime.breakage import roll_breakage
from warren.runtime.config import DEFAULT_CONFIG, FOOD_EFFICIENCY, ColonyConfig
from warren.runtime.events import draw_event, suppress
from warren.runtime.rng_service import RandomSource
from warren.state import (
    Breed,
    ColonyState,
    EpidemicState,
    FoodTier,
    Individual,
    WaterTier,
    spawn_individuals,
)


@dataclass(frozen=True, slots=True)
class DayOutcome:
    state: ColonyState
    event: GameEvent | None = None
    new_achievement: str | None = None
    new_achievements: tuple[str, ...] = ()
    coins_earned: int = 0
    births: int = 0
    event_rabbits: int = 0
    lost_to_event: int = 0
    lost_to_epidemic: int = 0
    broken_upgrade: str | None = None
    epidemic_resolved: bool = False
    epidemic_started: bool = False


def time_bonus(day: int, cfg: ColonyConfig = DEFAULT_CONFIG) -> float:
    """Seniority bonus on earnings, judged on the day being entered."""

    return min(cfg.time_bonus_cap, ((day + 1) // cfg.time_bonus_period_days) * cfg.time_bonus_step)


def daily_needs(
    population: int,
    state: ColonyState,
    *,
    epidemic_active: bool,
    cfg: ColonyConfig = DEFAULT_CONFIG,
) -> tuple[int, int]:
    """Food and water the colony consumes today."""

    penalty = cfg.epidemic_water_penalty if epidemic_active and state.food_tier is FoodTier.CARROTS else 1.0
    food = math.ceil(population * cfg.food_per_individual * state.food_consumption_multiplier)
    water = math.ceil(population * cfg.water_per_individual * state.water_consumption_multiplier * penalty)
    return food, water


def daily_earnings(population: tuple[Individual, ...], state: ColonyState, cfg: ColonyConfig = DEFAULT_CONFIG) -> int:
    base = sum(cfg.coins_per_individual * breed_spec(individual.breed).coin_multiplier for individual in population)
    efficiency = FOOD_EFFICIENCY[state.food_tier.value]
    return math.floor(base * efficiency * state.coin_multiplier * (1 + time_bonus(state.day, cfg)))


def breed(
    population: tuple[Individual, ...],
    state: ColonyState,
    rng: RandomSource,
    *,
    event: GameEvent | None,
    epidemic_active: bool,
    cfg: ColonyConfig = DEFAULT_CONFIG,
) -> tuple[Individual, ...]:
    """Return today's newborns (possibly none)."""

    n = len(population)
    capacity = state.capacity
    if n < cfg.min_breeding_population or n >= capacity:
        return ()
    if rng.rand("breed:roll") >= cfg.breeding_chance:
        return ()
    multiplier = cfg.purified_breeding_multiplier if state.water_tier is WaterTier.PURIFIED else 1.0
    multiplier *= state.breeding_bonus_multiplier
    if event is not None:
        multiplier *= event.effect.breeding_factor
    if epidemic_active:
        multiplier *= cfg.epidemic_breeding_multiplier
    births = max(0, min(math.floor(multiplier), capacity - n))
    if births == 0:
        return ()
    breeds = [rng.choice("breed:parent", population).breed for _ in range(births)]
    newborns, _ = spawn_individuals(state, breeds)
    return newborns


def _remove_predation(
    population: tuple[Individual, ...],
    event: GameEvent,
    rng: RandomSource,
    cfg: ColonyConfig,
) -> tuple[Individual, ...]:
    if not population:
        return population
    lo, hi = cfg.predation_range(event.event_id)
    fraction = rng.uniform("predation:fraction", lo, hi)
    count = max(1, math.floor(len(population) * fraction))
    victims = set(rng.sample("predation:victims", [individual.id for individual in population], count))
    return tuple(individual for individual in population if individual.id not in victims)


def advance_day(state: ColonyState, rng: RandomSource, *, config: ColonyConfig | None = None) -> DayOutcome:
    """Advance the colony by one day.  Always succeeds."""

    cfg = config or DEFAULT_CONFIG
    started_active = state.epidemic.active

    event = suppress(
        draw_event(rng, config=cfg),
        epidemic_active=started_active,
        population=state.population_size,
        cfg=cfg,
    )

    ticked = epidemic_sm.tick(state.epidemic, state.population)
    population = ticked.population
    epidemic: EpidemicState = ticked.epidemic
    survival_count = state.survival_count + (1 if ticked.resolved else 0)

    food_needed, water_needed = daily_needs(len(population), state, epidemic_active=started_active, cfg=cfg)
    coins_earned = daily_earnings(population, state, cfg)

    newborns = breed(population, state, rng, event=event, epidemic_active=started_active, cfg=cfg)
    working = population + newborns
    next_seq = state.next_individual_seq + len(newborns)

    event_rabbits = 0
    lost_to_event = 0
    epidemic_started = False
    if event is not None:
        effect = event.effect
        if event.is_epidemic and not epidemic.active:
            epidemic = epidemic_sm.infect(working, rng, cfg)
            epidemic_started = epidemic.active
        if effect.rabbits > 0 and len(working) < state.capacity:
            arrivals = min(effect.rabbits, state.capacity - len(working))
            seeded = replace(state, next_individual_seq=next_seq)
            added, next_seq = spawn_individuals(seeded, [Breed.COMMON] * arrivals)
            working = working + added
            event_rabbits = len(added)
        if event.is_predation:
            before = len(working)
            working = _remove_predation(working, event, rng, cfg)
            lost_to_event = before - len(working)
        epidemic = epidemic.pruned(individual.id for individual in working)

    wear = roll_breakage(state, rng, config=cfg)
    worn = wear.state

    effect_coins = event.effect.coins if event else 0
    effect_food = event.effect.food if event else 0
    effect_water = event.effect.water if event else 0
    effect_houses = event.effect.houses if event else 0

    next_state = replace(
        worn,
        population=working,
        next_individual_seq=next_seq,
        coins=max(0, state.coins + coins_earned + effect_coins + state.passive_coins_per_day),
        food=max(0, state.food - food_needed + effect_food + state.passive_food_per_day),
        water=max(0, state.water - water_needed + effect_water + state.passive_water_per_day),
        houses=state.houses + effect_houses,
        day=state.day + 1,
        epidemic=epidemic,
        survival_count=survival_count,
        total_born=state.total_born + len(newborns) + event_rabbits,
        total_coins_earned=state.total_coins_earned + coins_earned,
        pending_event=event,
    )
    next_state = epidemic_sm.prune(next_state)

    unlocks = apply_unlocks(next_state)
    return DayOutcome(
        state=unlocks.state,
        event=event,
        new_achievement=unlocks.latest,
        new_achievements=unlocks.unlocked,
        coins_earned=coins_earned,
        births=len(newborns),
        event_rabbits=event_rabbits,
        lost_to_event=lost_to_event,
        lost_to_epidemic=len(ticked.removed),
        broken_upgrade=wear.broken,
        epidemic_resolved=ticked.resolved,
        epidemic_started=epidemic_started,
    )


__all__ = ["DayOutcome", "advance_day", "breed", "daily_earnings", "daily_needs", "time_bonus"]
