from __future__ import annotations

from typing import Sequence

from warren.data.events import (
    EPIDEMIC_EVENT_ID,
    PREDATION_EVENT_IDS,
    RANDOM_EVENTS,
    EventRarity,
    GameEvent,
)
from warren.runtime.config import DEFAULT_CONFIG, ColonyConfig
from warren.runtime.rng_service import RandomSource


def roll_rarity(rng: RandomSource, cfg: ColonyConfig = DEFAULT_CONFIG) -> str:
    roll = rng.rand("event:rarity")
    if roll < cfg.common_rarity_cutoff:
        return EventRarity.COMMON
    if roll < cfg.uncommon_rarity_cutoff:
        return EventRarity.UNCOMMON
    return EventRarity.RARE


def draw_event(
    rng: RandomSource,
    *,
    config: ColonyConfig | None = None,
    catalog: Sequence[GameEvent] = RANDOM_EVENTS,
) -> GameEvent | None:
    """Roll for today's event.

    Nothing happens when the roll lands above ``event_chance``; otherwise a
    rarity band is rolled and one event is picked uniformly within it.
    """

    cfg = config or DEFAULT_CONFIG
    if rng.rand("event:roll") > cfg.event_chance:
        return None
    rarity = roll_rarity(rng, cfg)
    pool = [event for event in catalog if event.rarity == rarity]
    if not pool:
        return None
    return rng.choice("event:pick", pool)


def blocked_event_ids(*, epidemic_active: bool, population: int, cfg: ColonyConfig = DEFAULT_CONFIG) -> frozenset[str]:
    blocked: set[str] = set()
    if epidemic_active:
        blocked.add(EPIDEMIC_EVENT_ID)
    if population < cfg.fragile_population:
        blocked.add(EPIDEMIC_EVENT_ID)
        blocked.update(PREDATION_EVENT_IDS)
    return frozenset(blocked)


def suppress(
    event: GameEvent | None, *, epidemic_active: bool, population: int, cfg: ColonyConfig = DEFAULT_CONFIG
) -> GameEvent | None:
    """Drop events that cannot happen today.

    Fever never stacks on a running epidemic, and small colonies are spared
    both fever and predators.
    """

    if event is None:
        return None
    if event.event_id in blocked_event_ids(epidemic_active=epidemic_active, population=population, cfg=cfg):
        return None
    return event


__all__ = ["blocked_event_ids", "draw_event", "roll_rarity", "suppress"]
