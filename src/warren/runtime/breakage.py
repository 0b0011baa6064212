"""Upgrade wear: the occasional breakdown of an owned upgrade and its repair.

A breakdown removes the upgrade's benefit right away.  Tier upgrades drop the
colony one tier.  Generic upgrades have their effect divided or subtracted out
of the accumulators, never past the neutral value.  Buying the item again
(at an inflated repair price, see :mod:`warren.runtime.pricing`) restores it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from warren.data.shop import (
    LETTUCE_UPGRADE_ID,
    PELLETS_UPGRADE_ID,
    PURIFIED_WATER_ID,
    ItemEffect,
    ShopItem,
    get_item,
)
from warren.runtime.config import DEFAULT_CONFIG, ColonyConfig
from warren.runtime.rng_service import RandomSource
from warren.state import ColonyState, FoodTier, WaterTier

_MULTIPLIER_FIELDS = (
    "coin_multiplier",
    "breeding_bonus_multiplier",
    "food_consumption_multiplier",
    "water_consumption_multiplier",
)
_ADDITIVE_FIELDS = (
    "capacity_bonus_per_house",
    "passive_coins_per_day",
    "passive_food_per_day",
    "passive_water_per_day",
    "shop_discount_bonus",
)


@dataclass(frozen=True, slots=True)
class BreakageResult:
    state: ColonyState
    broken: str | None = None


def breakage_candidates(state: ColonyState) -> list[str]:
    """Upgrades that can break today, in a stable order."""

    candidates = [upgrade_id for upgrade_id in sorted(state.owned_upgrades) if upgrade_id not in state.broken_upgrades]
    if state.food_tier is FoodTier.PELLETS:
        candidates.append(PELLETS_UPGRADE_ID)
    elif state.food_tier is FoodTier.LETTUCE:
        candidates.append(LETTUCE_UPGRADE_ID)
    if state.water_tier is WaterTier.PURIFIED:
        candidates.append(PURIFIED_WATER_ID)
    return candidates


def _reverse_multiplier(current: float, factor: float) -> float:
    if factor == 1.0:
        return current
    reverted = current / factor
    if factor > 1.0:
        return max(1.0, reverted)
    return min(1.0, reverted)


def reverse_effect(state: ColonyState, item: ShopItem) -> ColonyState:
    """Undo ``item``'s benefit on ``state`` and mark it broken."""

    effect = item.effect
    updates: dict[str, object] = {"broken_upgrades": state.broken_upgrades | {item.item_id}}
    if not item.reversible:
        return replace(state, **updates)
    if effect.food_tier is not None:
        if state.food_tier is effect.food_tier:
            updates["food_tier"] = state.food_tier.step_down()
    elif effect.water_tier is not None:
        if state.water_tier is effect.water_tier:
            updates["water_tier"] = WaterTier.NORMAL
    else:
        for name in _MULTIPLIER_FIELDS:
            updates[name] = _reverse_multiplier(getattr(state, name), getattr(effect, name))
        for name in _ADDITIVE_FIELDS:
            amount = getattr(effect, name)
            if amount:
                updates[name] = max(type(amount)(0), getattr(state, name) - amount)
        updates["owned_upgrades"] = state.owned_upgrades - {item.item_id}
    return replace(state, **updates)


def apply_upgrade_effect(state: ColonyState, effect: ItemEffect, cfg: ColonyConfig = DEFAULT_CONFIG) -> ColonyState:
    """Fold a generic upgrade's effect into the accumulators."""

    updates: dict[str, object] = {}
    for name in _MULTIPLIER_FIELDS:
        factor = getattr(effect, name)
        if factor != 1.0:
            updates[name] = getattr(state, name) * factor
    for name in _ADDITIVE_FIELDS:
        amount = getattr(effect, name)
        if amount:
            updates[name] = getattr(state, name) + amount
    if "shop_discount_bonus" in updates:
        updates["shop_discount_bonus"] = min(cfg.shop_discount_cap, updates["shop_discount_bonus"])
    return replace(state, **updates)


def roll_breakage(state: ColonyState, rng: RandomSource, *, config: ColonyConfig | None = None) -> BreakageResult:
    """Daily breakdown check; at most one upgrade breaks per day."""

    cfg = config or DEFAULT_CONFIG
    candidates = breakage_candidates(state)
    if len(candidates) < cfg.breakage_min_candidates:
        return BreakageResult(state=state)
    if rng.rand("breakage:roll") >= cfg.breakage_chance:
        return BreakageResult(state=state)
    broken_id = rng.choice("breakage:pick", candidates)
    broken = reverse_effect(state, get_item(broken_id))
    return BreakageResult(state=replace(broken, break_count=broken.break_count + 1), broken=broken_id)


__all__ = [
    "BreakageResult",
    "apply_upgrade_effect",
    "breakage_candidates",
    "reverse_effect",
    "roll_breakage",
]
