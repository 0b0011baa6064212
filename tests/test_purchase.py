from __future__ import annotations

from dataclasses import replace

import pytest

from warren.data.shop import get_item
from warren.runtime.rejections import RejectionReason
from warren.runtime.shop import purchase
from warren.state import Breed, DailySpend, FoodTier, WaterTier, new_game


def _rich(**overrides):
    return replace(new_game(), coins=100_000, **overrides)


def _reason(state, item_id, rng, qty=1):
    outcome = purchase(state, get_item(item_id), qty, rng)
    return outcome.rejection.reason if outcome.rejection else None


def test_buying_food_in_bulk(scripted) -> None:
    outcome = purchase(new_game(), get_item("carrot-bundle"), 5, scripted)

    assert outcome.accepted
    assert outcome.price == 38
    assert outcome.state.coins == 12
    assert outcome.state.food == 60
    assert outcome.state.coins_spent_by_day == (DailySpend(day=1, amount=38),)


def test_same_day_spending_accumulates(scripted) -> None:
    first = purchase(new_game(), get_item("water-bucket"), 1, scripted).state
    second = purchase(first, get_item("water-bucket"), 1, scripted).state

    assert second.water == 30
    assert second.spent_on(1) == 12
    assert len(second.coins_spent_by_day) == 1


def test_buying_a_rabbit_adds_the_breed(scripted) -> None:
    outcome = purchase(replace(new_game(), coins=200), get_item("angora-rabbit"), 1, scripted)

    newcomer = outcome.state.population[-1]
    assert outcome.state.population_size == 2
    assert newcomer.breed is Breed.RARE
    assert newcomer.id == "rabbit:2"
    assert outcome.state.coins == 80


def test_tier_upgrade_sets_tier_and_unlocks(scripted) -> None:
    outcome = purchase(replace(new_game(), coins=200), get_item("lettuce-upgrade"), 1, scripted)

    assert outcome.state.food_tier is FoodTier.LETTUCE
    assert outcome.state.coins == 50
    assert "lettuce-garden" in outcome.new_achievements
    assert outcome.new_achievement == outcome.new_achievements[-1]


def test_owned_tiers_are_rejected(scripted) -> None:
    lettuce = _rich(food_tier=FoodTier.LETTUCE)
    pellets = _rich(food_tier=FoodTier.PELLETS)
    purified = _rich(water_tier=WaterTier.PURIFIED)

    assert _reason(lettuce, "lettuce-upgrade", scripted) is RejectionReason.ALREADY_OWNED
    assert _reason(pellets, "lettuce-upgrade", scripted) is RejectionReason.ALREADY_OWNED
    assert _reason(pellets, "pellets-upgrade", scripted) is RejectionReason.ALREADY_OWNED
    assert _reason(purified, "purified-water", scripted) is RejectionReason.ALREADY_OWNED


def test_generic_upgrade_cannot_be_bought_twice(scripted) -> None:
    state = _rich(food_tier=FoodTier.LETTUCE)
    owned = purchase(state, get_item("training-grounds"), 1, scripted).state

    assert _reason(owned, "training-grounds", scripted) is RejectionReason.ALREADY_OWNED


@pytest.mark.parametrize(
    "item_id, overrides",
    [
        ("pellets-upgrade", {}),
        ("training-grounds", {}),
        ("fertilizer-system", {}),
        ("bunny-nursery", {}),
        ("hydration-station", {}),
        ("purifier-plus", {}),
        ("mega-hutch", {"houses": 1}),
        ("carrot-farm", {"day": 9}),
        ("deep-well", {"day": 9}),
        ("solar-panels", {"day": 19}),
        ("market-stall", {"food_tier": FoodTier.LETTUCE}),
        ("logistics-network", {"day": 15, "houses": 2}),
        ("logistics-network", {"day": 14, "houses": 3}),
    ],
)
def test_locked_items(item_id, overrides, scripted) -> None:
    assert _reason(_rich(**overrides), item_id, scripted) is RejectionReason.PREREQUISITE_UNMET


@pytest.mark.parametrize(
    "item_id, overrides",
    [
        ("pellets-upgrade", {"food_tier": FoodTier.LETTUCE}),
        ("training-grounds", {"food_tier": FoodTier.LETTUCE}),
        ("fertilizer-system", {"food_tier": FoodTier.PELLETS}),
        ("bunny-nursery", {"water_tier": WaterTier.PURIFIED}),
        ("mega-hutch", {"houses": 2}),
        ("carrot-farm", {"day": 10}),
        ("solar-panels", {"day": 20}),
        ("market-stall", {"food_tier": FoodTier.LETTUCE, "owned_upgrades": frozenset({"training-grounds"})}),
        ("logistics-network", {"day": 15, "houses": 3}),
    ],
)
def test_unlocked_items(item_id, overrides, scripted) -> None:
    assert _reason(_rich(**overrides), item_id, scripted) is None


def test_capacity_is_checked_before_funds(scripted) -> None:
    assert _reason(new_game(), "common-rabbit", scripted, qty=4) is RejectionReason.CAPACITY_EXCEEDED


def test_insufficient_funds_leaves_state_untouched(scripted) -> None:
    state = new_game()
    outcome = purchase(state, get_item("lettuce-upgrade"), 1, scripted)

    assert outcome.rejection.reason is RejectionReason.INSUFFICIENT_FUNDS
    assert outcome.state is state
    assert outcome.price == 150


def test_upgrades_are_bought_singly(scripted) -> None:
    outcome = purchase(_rich(food_tier=FoodTier.LETTUCE), get_item("training-grounds"), 3, scripted)

    assert outcome.quantity == 1
    assert outcome.price == 500
    assert outcome.state.coin_multiplier == pytest.approx(1.25)


def test_shop_discount_is_capped(scripted) -> None:
    state = _rich(day=15, houses=3, shop_discount_bonus=0.25)

    outcome = purchase(state, get_item("logistics-network"), 1, scripted)

    assert outcome.state.shop_discount_bonus == pytest.approx(0.3)


def test_mega_hutch_raises_capacity(scripted) -> None:
    outcome = purchase(_rich(houses=2), get_item("mega-hutch"), 1, scripted)
    assert outcome.state.capacity == 12
