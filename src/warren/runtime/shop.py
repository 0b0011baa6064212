"""Purchase, sale and event-dismissal operations.

Each operation validates first and returns an outcome carrying either the new
state or a :class:`~warren.runtime.rejections.Rejection`.  A rejected
operation leaves the state untouched.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from warren.data.shop import PELLETS_UPGRADE_ID, ShopItem
from warren.runtime import epidemic as epidemic_sm
from warren.runtime.achievements import apply_unlocks
from warren.runtime.breakage import apply_upgrade_effect
from warren.runtime.config import DEFAULT_CONFIG, ColonyConfig
from warren.runtime.pricing import normalize_quantity, price
from warren.runtime.rejections import Rejection, RejectionReason
from warren.runtime.rng_service import RandomSource
from warren.state import ColonyState, WaterTier, record_spend, spawn_individuals


@dataclass(frozen=True, slots=True)
class PurchaseOutcome:
    state: ColonyState
    item_id: str
    quantity: int = 0
    price: int = 0
    rejection: Rejection | None = None
    repaired: bool = False
    new_achievement: str | None = None
    new_achievements: tuple[str, ...] = ()

    @property
    def accepted(self) -> bool:
        return self.rejection is None


@dataclass(frozen=True, slots=True)
class SaleOutcome:
    state: ColonyState
    sold: int = 0
    coins: int = 0
    rejection: Rejection | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


def _already_owned(state: ColonyState, item: ShopItem) -> Rejection | None:
    if not item.is_upgrade:
        return None
    effect = item.effect
    if effect.food_tier is not None:
        if effect.food_tier.rank <= state.food_tier.rank:
            return Rejection(RejectionReason.ALREADY_OWNED, f"{item.name} is already in use.")
        return None
    if effect.water_tier is not None:
        if state.water_tier is effect.water_tier:
            return Rejection(RejectionReason.ALREADY_OWNED, f"{item.name} is already installed.")
        return None
    if item.item_id in state.owned_upgrades and item.item_id not in state.broken_upgrades:
        return Rejection(RejectionReason.ALREADY_OWNED, f"You already own {item.name}.")
    return None


def _prerequisite_unmet(state: ColonyState, item: ShopItem) -> Rejection | None:
    if item.item_id == PELLETS_UPGRADE_ID and state.food_tier.rank < 1:
        return Rejection(RejectionReason.PREREQUISITE_UNMET, "Requires Lettuce Garden first.")
    if item.effect.water_tier is not None and state.water_tier is not WaterTier.NORMAL:
        return Rejection(RejectionReason.PREREQUISITE_UNMET, "Water is already upgraded.")
    gate = item.prerequisite
    if gate is None:
        return None
    met = (
        state.day >= gate.min_day
        and state.houses >= gate.min_houses
        and (gate.min_food_tier is None or state.food_tier.rank >= gate.min_food_tier.rank)
        and (gate.water_tier is None or state.water_tier is gate.water_tier)
        and all(required in state.owned_upgrades for required in gate.requires_upgrades)
    )
    if met:
        return None
    return Rejection(RejectionReason.PREREQUISITE_UNMET, gate.message or f"{item.name} is locked.")


def validate_purchase(
    state: ColonyState, item: ShopItem, quantity: int, cost: int
) -> Rejection | None:
    """First failing check, in order: owned, locked, no room, too expensive."""

    rejection = _already_owned(state, item) or _prerequisite_unmet(state, item)
    if rejection is not None:
        return rejection
    added = item.effect.rabbits * quantity
    if added and state.population_size + added > state.capacity:
        return Rejection(
            RejectionReason.CAPACITY_EXCEEDED,
            f"Not enough room: {state.population_size}/{state.capacity} rabbits housed.",
        )
    if state.coins < cost:
        return Rejection(RejectionReason.INSUFFICIENT_FUNDS, f"{item.name} costs {cost} coins; you have {state.coins}.")
    return None


def _apply_item(state: ColonyState, item: ShopItem, quantity: int, cfg: ColonyConfig) -> ColonyState:
    effect = item.effect
    updated = state
    if effect.rabbits and item.breed is not None:
        added, next_seq = spawn_individuals(updated, [item.breed] * (effect.rabbits * quantity))
        updated = replace(updated, population=updated.population + added, next_individual_seq=next_seq)
    updated = replace(
        updated,
        food=updated.food + effect.food * quantity,
        water=updated.water + effect.water * quantity,
        houses=updated.houses + effect.houses * quantity,
    )
    if effect.food_tier is not None:
        updated = replace(updated, food_tier=effect.food_tier)
    if effect.water_tier is not None:
        updated = replace(updated, water_tier=effect.water_tier)
    if item.is_generic_upgrade and item.item_id not in state.owned_upgrades:
        updated = apply_upgrade_effect(updated, effect, cfg)
        updated = replace(updated, owned_upgrades=updated.owned_upgrades | {item.item_id})
    return updated


def purchase(
    state: ColonyState,
    item: ShopItem,
    quantity: int | float,
    rng: RandomSource,
    *,
    config: ColonyConfig | None = None,
) -> PurchaseOutcome:
    """Buy ``quantity`` of ``item``; broken upgrades are repaired at the inflated price."""

    cfg = config or DEFAULT_CONFIG
    qty = normalize_quantity(item, quantity)
    cost = price(state, item, qty, rng, config=cfg)
    rejection = validate_purchase(state, item, qty, cost)
    if rejection is not None:
        return PurchaseOutcome(state=state, item_id=item.item_id, quantity=qty, price=cost, rejection=rejection)

    repairing = item.item_id in state.broken_upgrades
    updated = _apply_item(replace(state, coins=state.coins - cost), item, qty, cfg)
    updated = replace(updated, coins_spent_by_day=record_spend(updated.coins_spent_by_day, day=state.day, amount=cost))
    if repairing:
        updated = replace(
            updated,
            broken_upgrades=updated.broken_upgrades - {item.item_id},
            repair_count=updated.repair_count + 1,
        )
    unlocks = apply_unlocks(updated)
    return PurchaseOutcome(
        state=unlocks.state,
        item_id=item.item_id,
        quantity=qty,
        price=cost,
        repaired=repairing,
        new_achievement=unlocks.latest,
        new_achievements=unlocks.unlocked,
    )


def is_sale_window(day: int, cfg: ColonyConfig = DEFAULT_CONFIG) -> bool:
    return day % cfg.sale_window_days == 0


def sell_population(state: ColonyState, rng: RandomSource, *, config: ColonyConfig | None = None) -> SaleOutcome:
    """Sell a random share of the colony on a market day."""

    cfg = config or DEFAULT_CONFIG
    if state.is_extinct:
        return SaleOutcome(state=state, rejection=Rejection(RejectionReason.EMPTY_POPULATION, "No rabbits to sell."))
    if not is_sale_window(state.day, cfg):
        days_left = cfg.sale_window_days - state.day % cfg.sale_window_days
        return SaleOutcome(
            state=state,
            rejection=Rejection(RejectionReason.NOT_SALE_WINDOW, f"The market opens in {days_left} days."),
        )
    if state.last_sale_day == state.day:
        return SaleOutcome(
            state=state,
            rejection=Rejection(RejectionReason.ALREADY_SOLD_TODAY, "You already sold rabbits today."),
        )

    fraction = rng.uniform("sale:fraction", cfg.sale_fraction_min, cfg.sale_fraction_max)
    count = max(1, math.floor(state.population_size * fraction))
    sold_ids = set(rng.sample("sale:pick", [individual.id for individual in state.population], count))
    proceeds = len(sold_ids) * cfg.sale_price_per_individual
    updated = replace(
        state,
        population=tuple(individual for individual in state.population if individual.id not in sold_ids),
        coins=state.coins + proceeds,
        total_coins_earned=state.total_coins_earned + proceeds,
        last_sale_day=state.day,
    )
    return SaleOutcome(state=epidemic_sm.prune(updated), sold=len(sold_ids), coins=proceeds)


def dismiss_event(state: ColonyState) -> ColonyState:
    if state.pending_event is None:
        return state
    return replace(state, pending_event=None)


__all__ = [
    "PurchaseOutcome",
    "SaleOutcome",
    "dismiss_event",
    "is_sale_window",
    "purchase",
    "sell_population",
    "validate_purchase",
]
