"""Rabbit fever state machine.

States are ``Dormant`` (``EpidemicState.active`` false) and
``Active(days_remaining, isolation_chosen)``.  Only the fever event starts an
outbreak.  It runs for a fixed number of days and, when the timer expires,
every infected rabbit is lost whether or not it was isolated.  Paying for a
cure ends it at once with nobody lost.  Both endings count as a survival.
An outbreak whose infected rabbits all disappear for other reasons (predators,
sales) ends quietly and does not count.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from warren.runtime.config import DEFAULT_CONFIG, ColonyConfig
from warren.runtime.rng_service import RandomSource
from warren.state import DORMANT, ColonyState, EpidemicState, Individual


@dataclass(frozen=True, slots=True)
class EpidemicTick:
    """Result of advancing an active epidemic by one day."""

    epidemic: EpidemicState
    population: tuple[Individual, ...]
    removed: tuple[str, ...] = ()
    resolved: bool = False


def infect(
    population: tuple[Individual, ...],
    rng: RandomSource,
    cfg: ColonyConfig = DEFAULT_CONFIG,
) -> EpidemicState:
    """Start an outbreak over ``population``; returns dormant for an empty colony."""

    if not population:
        return DORMANT
    fraction = rng.uniform("epidemic:fraction", cfg.infection_fraction_min, cfg.infection_fraction_max)
    count = max(1, math.floor(len(population) * fraction))
    chosen = rng.sample("epidemic:infect", [individual.id for individual in population], count)
    return EpidemicState(
        active=True,
        infected_ids=frozenset(chosen),
        days_remaining=cfg.epidemic_duration_days,
    )


def tick(epidemic: EpidemicState, population: tuple[Individual, ...]) -> EpidemicTick:
    """Count one day off an active outbreak, removing the infected when it expires."""

    if not epidemic.active:
        return EpidemicTick(epidemic=epidemic, population=population)
    days_left = epidemic.days_remaining - 1
    if days_left > 0:
        return EpidemicTick(epidemic=replace(epidemic, days_remaining=days_left), population=population)
    survivors = tuple(individual for individual in population if individual.id not in epidemic.infected_ids)
    removed = tuple(individual.id for individual in population if individual.id in epidemic.infected_ids)
    return EpidemicTick(epidemic=DORMANT, population=survivors, removed=removed, resolved=True)


def prune(state: ColonyState) -> ColonyState:
    """Drop infection references to rabbits no longer in the colony."""

    pruned = state.epidemic.pruned(state.population_ids())
    if pruned is state.epidemic:
        return state
    return replace(state, epidemic=pruned)


def choose_isolate(state: ColonyState) -> ColonyState:
    """Quarantine every infected rabbit.  The timer and the eventual loss are unchanged."""

    epidemic = state.epidemic
    if not epidemic.active:
        return state
    return replace(
        state,
        epidemic=replace(epidemic, isolated_ids=epidemic.infected_ids, isolation_chosen=True),
    )


def cure_cost(coins: int, cost_fraction: float) -> int:
    fraction = min(1.0, max(0.0, float(cost_fraction)))
    return math.floor(coins * fraction)


def choose_cure(state: ColonyState, cost_fraction: float | None = None, *, config: ColonyConfig | None = None) -> ColonyState:
    """End the outbreak immediately, paying a fraction of current coins."""

    if not state.epidemic.active:
        return state
    cfg = config or DEFAULT_CONFIG
    fraction = cfg.cure_cost_fraction if cost_fraction is None else cost_fraction
    return replace(
        state,
        coins=state.coins - cure_cost(state.coins, fraction),
        epidemic=DORMANT,
        survival_count=state.survival_count + 1,
    )


__all__ = ["EpidemicTick", "choose_cure", "choose_isolate", "cure_cost", "infect", "prune", "tick"]
