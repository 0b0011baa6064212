from __future__ import annotations

import math

from warren.data.shop import ShopItem
from warren.runtime.config import DEFAULT_CONFIG, ColonyConfig
from warren.runtime.rng_service import RandomSource
from warren.state import ColonyState


def normalize_quantity(item: ShopItem, quantity: int | float) -> int:
    """Floor to an integer ``>= 1``; upgrades are always bought singly."""

    if item.is_upgrade:
        return 1
    return max(1, int(math.floor(quantity)))


def day_multiplier(day: int, cfg: ColonyConfig = DEFAULT_CONFIG) -> float:
    return 1.0 + (day // cfg.price_day_step) * cfg.price_day_increment


def bulk_discount(quantity: int, cfg: ColonyConfig = DEFAULT_CONFIG) -> float:
    if quantity >= cfg.bulk_discount_large_qty:
        return cfg.bulk_discount_large
    if quantity >= cfg.bulk_discount_small_qty:
        return cfg.bulk_discount_small
    return 0.0


def progression_surcharge(day: int, cfg: ColonyConfig = DEFAULT_CONFIG) -> float:
    return min(cfg.surcharge_cap, (day // cfg.surcharge_day_step) * cfg.surcharge_increment)


def house_discount(houses: int, cfg: ColonyConfig = DEFAULT_CONFIG) -> float:
    return min(cfg.house_discount_cap, (houses // cfg.house_discount_step) * cfg.house_discount_increment)


def discount_factor(state: ColonyState, item: ShopItem, quantity: int, cfg: ColonyConfig = DEFAULT_CONFIG) -> float:
    """Price factor for consumables and housing; other item types pay list price.

    The progression surcharge is subtracted from the discount, so late-game
    prices rise above list even after bulk and house discounts.
    """

    if not item.is_discountable:
        return 1.0
    total = (
        bulk_discount(quantity, cfg)
        - progression_surcharge(state.day, cfg)
        + house_discount(state.houses, cfg)
        + state.shop_discount_bonus
    )
    return 1.0 - min(cfg.max_total_discount, total)


def repair_multiplier(
    state: ColonyState, item: ShopItem, rng: RandomSource, cfg: ColonyConfig = DEFAULT_CONFIG
) -> int:
    if item.is_upgrade and item.item_id in state.broken_upgrades:
        return rng.randint("price:repair", cfg.repair_multiplier_min, cfg.repair_multiplier_max)
    return 1


def price(
    state: ColonyState,
    item: ShopItem,
    quantity: int | float,
    rng: RandomSource,
    *,
    config: ColonyConfig | None = None,
) -> int:
    """Coin cost of buying ``quantity`` of ``item`` in ``state``.

    A broken upgrade is re-priced with a fresh random repair multiplier on
    every call, so two quotes for the same repair may differ.
    """

    cfg = config or DEFAULT_CONFIG
    qty = normalize_quantity(item, quantity)
    total = (
        item.cost
        * qty
        * discount_factor(state, item, qty, cfg)
        * repair_multiplier(state, item, rng, cfg)
        * day_multiplier(state.day, cfg)
    )
    return int(math.ceil(total))


__all__ = [
    "bulk_discount",
    "day_multiplier",
    "discount_factor",
    "house_discount",
    "normalize_quantity",
    "price",
    "progression_surcharge",
    "repair_multiplier",
]
