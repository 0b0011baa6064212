"""Static catalog of random colony events.

Each event carries a small, immutable effect record.  The draw procedure that
picks one per day lives in :mod:`warren.runtime.events`; the engine applies the
effects in :mod:`warren.runtime.day_engine`.
"""

from __future__ import annotations

from dataclasses import dataclass


class EventRarity:
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"


class EventTone:
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


EPIDEMIC_EVENT_ID = "rabbit-fever"
PREDATION_EVENT_IDS = ("fox-attack", "wolf-raid", "bear-rampage")


@dataclass(frozen=True, slots=True)
class EventEffect:
    coins: int = 0
    food: int = 0
    water: int = 0
    rabbits: int = 0
    houses: int = 0
    # Day-only breeding multiplier; 0 means "no modifier".
    breeding_bonus: float = 0.0

    @property
    def breeding_factor(self) -> float:
        return self.breeding_bonus if self.breeding_bonus else 1.0


@dataclass(frozen=True, slots=True)
class GameEvent:
    event_id: str
    name: str
    description: str
    effect: EventEffect
    tone: str
    rarity: str

    @property
    def is_predation(self) -> bool:
        return self.event_id in PREDATION_EVENT_IDS

    @property
    def is_epidemic(self) -> bool:
        return self.event_id == EPIDEMIC_EVENT_ID


def _event(
    event_id: str,
    name: str,
    description: str,
    *,
    tone: str,
    rarity: str,
    **effect: float,
) -> GameEvent:
    return GameEvent(
        event_id=event_id,
        name=name,
        description=description,
        effect=EventEffect(**effect),
        tone=tone,
        rarity=rarity,
    )


RANDOM_EVENTS: tuple[GameEvent, ...] = (
    # Positive
    _event("generous-visitor", "Generous Visitor", "A kind traveler leaves you a gift of 50 coins.",
           tone=EventTone.POSITIVE, rarity=EventRarity.COMMON, coins=50),
    _event("food-delivery", "Food Delivery", "A local farmer drops off extra vegetables.",
           tone=EventTone.POSITIVE, rarity=EventRarity.COMMON, food=20),
    _event("rain-blessing", "Blessed Rain", "Fresh rainwater fills your reserves.",
           tone=EventTone.POSITIVE, rarity=EventRarity.COMMON, water=25),
    _event("perfect-weather", "Perfect Weather", "The ideal conditions boost breeding success.",
           tone=EventTone.POSITIVE, rarity=EventRarity.UNCOMMON, breeding_bonus=2.0),
    _event("treasure-find", "Hidden Treasure", "You discover a buried treasure worth 100 coins.",
           tone=EventTone.POSITIVE, rarity=EventRarity.RARE, coins=100),
    _event("wandering-rabbit", "Wandering Rabbit", "A friendly rabbit joins your colony.",
           tone=EventTone.POSITIVE, rarity=EventRarity.UNCOMMON, rabbits=1),
    _event("supply-donation", "Supply Donation", "A charity donates food and water.",
           tone=EventTone.POSITIVE, rarity=EventRarity.UNCOMMON, food=15, water=15),
    _event("lucky-day", "Lucky Day", "Everything seems to be going your way. Bonus coins.",
           tone=EventTone.POSITIVE, rarity=EventRarity.RARE, coins=75),
    _event("free-house", "Gifted Hutch", "A benefactor donates a sturdy new house.",
           tone=EventTone.POSITIVE, rarity=EventRarity.RARE, houses=1),
    # Negative
    _event("food-spoiled", "Food Spoiled", "Some of your food has gone bad.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.COMMON, food=-10),
    _event("water-leak", "Water Leak", "A leak in your water tank wastes resources.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.COMMON, water=-8),
    _event("tax-collector", "Tax Collector", "The tax collector takes a portion of your earnings.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.COMMON, coins=-30),
    _event("storm-damage", "Storm Damage", "A storm damages some supplies.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.UNCOMMON, food=-5, water=-5, coins=-20),
    _event("predator-scare", "Predator Scare", "A predator frightens the rabbits, reducing breeding today.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.UNCOMMON, breeding_bonus=-0.5),
    _event("fox-attack", "Fox Attack", "A fox sneaks in and eats about 10% of your rabbits.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.UNCOMMON),
    _event("wolf-raid", "Wolf Raid", "A wolf pack raids the farm, taking roughly 20% of your rabbits.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.UNCOMMON),
    _event("bear-rampage", "Bear Rampage", "A bear goes on a rampage. Up to 35% of your rabbits are lost.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.RARE),
    _event(EPIDEMIC_EVENT_ID, "Rabbit Fever",
           "A contagious fever is spreading. Breeding is heavily reduced and water needs spike on carrots.",
           tone=EventTone.NEGATIVE, rarity=EventRarity.RARE, breeding_bonus=0.25),
    # Neutral
    _event("peaceful-day", "Peaceful Day", "A calm, uneventful day on the farm.",
           tone=EventTone.NEUTRAL, rarity=EventRarity.COMMON),
    _event("traveling-merchant", "Traveling Merchant", "A merchant passes by but you have nothing to trade.",
           tone=EventTone.NEUTRAL, rarity=EventRarity.COMMON),
)

_BY_ID = {event.event_id: event for event in RANDOM_EVENTS}


def get_event(event_id: str) -> GameEvent:
    return _BY_ID[event_id]


__all__ = [
    "EPIDEMIC_EVENT_ID",
    "EventEffect",
    "EventRarity",
    "EventTone",
    "GameEvent",
    "PREDATION_EVENT_IDS",
    "RANDOM_EVENTS",
    "get_event",
]
