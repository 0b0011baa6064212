"""Static catalogs: breeds, shop items, random events and achievements."""

from .achievements import ACHIEVEMENTS, Achievement, ColonyStats, get_achievement
from .breeds import BreedSpec, breed_spec
from .events import RANDOM_EVENTS, EventEffect, GameEvent, get_event
from .shop import SHOP_ITEMS, ItemEffect, ItemType, ShopItem, get_item

__all__ = [
    "ACHIEVEMENTS",
    "Achievement",
    "BreedSpec",
    "ColonyStats",
    "EventEffect",
    "GameEvent",
    "ItemEffect",
    "ItemType",
    "RANDOM_EVENTS",
    "SHOP_ITEMS",
    "ShopItem",
    "breed_spec",
    "get_achievement",
    "get_event",
    "get_item",
]
