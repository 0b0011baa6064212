from __future__ import annotations

from dataclasses import replace

import pytest

from warren.data.shop import get_item
from warren.runtime.breakage import breakage_candidates, reverse_effect, roll_breakage
from warren.runtime.day_engine import advance_day
from warren.runtime.shop import purchase
from warren.state import FoodTier, WaterTier, new_game


def _upgraded(**overrides):
    state = replace(
        new_game(),
        food_tier=FoodTier.LETTUCE,
        owned_upgrades=frozenset({"training-grounds", "market-stall"}),
        coin_multiplier=1.25 * 1.15,
        coins=10_000,
    )
    return replace(state, **overrides)


def test_candidates_include_owned_upgrades_and_current_tiers() -> None:
    state = _upgraded(
        water_tier=WaterTier.PURIFIED,
        owned_upgrades=frozenset({"training-grounds", "mega-hutch"}),
    )
    assert breakage_candidates(state) == ["mega-hutch", "training-grounds", "lettuce-upgrade", "purified-water"]


def test_broken_upgrades_are_not_candidates() -> None:
    state = _upgraded(broken_upgrades=frozenset({"market-stall"}))
    assert "market-stall" not in breakage_candidates(state)


def test_no_roll_with_fewer_than_three_candidates(scripted) -> None:
    state = replace(new_game(), food_tier=FoodTier.PELLETS, water_tier=WaterTier.PURIFIED)

    result = roll_breakage(state, scripted)

    assert result.broken is None
    assert "breakage:roll" not in scripted.calls


def test_roll_above_chance_breaks_nothing(scripted) -> None:
    scripted.script("breakage:roll", 0.5)
    result = roll_breakage(_upgraded(), scripted)
    assert result.broken is None
    assert result.state == _upgraded()


def test_generic_upgrade_breaks_and_is_reversed(scripted) -> None:
    scripted.script("breakage:roll", 0.0).script("breakage:pick", "training-grounds")

    result = roll_breakage(_upgraded(), scripted)
    state = result.state

    assert result.broken == "training-grounds"
    assert state.coin_multiplier == pytest.approx(1.15)
    assert "training-grounds" not in state.owned_upgrades
    assert "training-grounds" in state.broken_upgrades
    assert state.break_count == 1


def test_tier_upgrade_steps_down_one_tier(scripted) -> None:
    state = _upgraded(food_tier=FoodTier.PELLETS)
    scripted.script("breakage:roll", 0.0).script("breakage:pick", "pellets-upgrade")

    broken = roll_breakage(state, scripted).state

    assert broken.food_tier is FoodTier.LETTUCE
    assert "pellets-upgrade" in broken.broken_upgrades


@pytest.mark.parametrize(
    "item_id, field, before, expected",
    [
        ("training-grounds", "coin_multiplier", 1.1, 1.0),
        ("fertilizer-system", "food_consumption_multiplier", 0.9, 1.0),
        ("bunny-nursery", "breeding_bonus_multiplier", 1.5625, 1.25),
        ("carrot-farm", "passive_food_per_day", 5, 0),
        ("logistics-network", "shop_discount_bonus", 0.3, 0.2),
    ],
)
def test_reversal_never_passes_neutral(item_id, field, before, expected) -> None:
    state = replace(new_game(), **{field: before})
    reverted = reverse_effect(state, get_item(item_id))
    assert getattr(reverted, field) == pytest.approx(expected)


def test_water_filter_break_during_a_day(scripted) -> None:
    state = _upgraded(water_tier=WaterTier.PURIFIED, owned_upgrades=frozenset({"training-grounds"}))
    scripted.script("breakage:roll", 0.0).script("breakage:pick", "purified-water")

    outcome = advance_day(state, scripted)

    assert outcome.broken_upgrade == "purified-water"
    assert outcome.state.water_tier is WaterTier.NORMAL
    assert "first-break" in outcome.new_achievements


def test_repair_restores_effect_at_inflated_price(scripted) -> None:
    scripted.script("breakage:roll", 0.0).script("breakage:pick", "training-grounds")
    broken = roll_breakage(_upgraded(), scripted).state
    scripted.script("price:repair", 3)

    outcome = purchase(broken, get_item("training-grounds"), 1, scripted)
    state = outcome.state

    assert outcome.accepted
    assert outcome.repaired
    assert outcome.price == 1_500
    assert state.coins == 10_000 - 1_500
    assert "training-grounds" in state.owned_upgrades
    assert "training-grounds" not in state.broken_upgrades
    assert state.coin_multiplier == pytest.approx(1.25 * 1.15)
    assert state.repair_count == 1
    assert "first-repair" in outcome.new_achievements


def test_tier_repair_moves_back_up(scripted) -> None:
    state = _upgraded(food_tier=FoodTier.PELLETS)
    scripted.script("breakage:roll", 0.0).script("breakage:pick", "pellets-upgrade")
    broken = roll_breakage(state, scripted).state
    scripted.script("price:repair", 2)

    outcome = purchase(broken, get_item("pellets-upgrade"), 1, scripted)

    assert outcome.accepted
    assert outcome.price == 800
    assert outcome.state.food_tier is FoodTier.PELLETS
    assert outcome.state.broken_upgrades == frozenset()


def _hutch_colony():
    return replace(
        new_game(),
        food_tier=FoodTier.LETTUCE,
        water_tier=WaterTier.PURIFIED,
        owned_upgrades=frozenset({"mega-hutch"}),
        capacity_bonus_per_house=2,
        houses=2,
        coins=10_000,
    )


def test_mega_hutch_breakdown_keeps_capacity(scripted) -> None:
    state = _hutch_colony()
    scripted.script("breakage:roll", 0.0).script("breakage:pick", "mega-hutch")

    result = roll_breakage(state, scripted)
    broken = result.state

    assert breakage_candidates(state) == ["mega-hutch", "lettuce-upgrade", "purified-water"]
    assert result.broken == "mega-hutch"
    assert broken.break_count == 1
    assert "mega-hutch" in broken.broken_upgrades
    assert "mega-hutch" in broken.owned_upgrades
    assert broken.capacity == 12


def test_mega_hutch_repair_does_not_stack_bonus(scripted) -> None:
    scripted.script("breakage:roll", 0.0).script("breakage:pick", "mega-hutch")
    broken = roll_breakage(_hutch_colony(), scripted).state
    scripted.script("price:repair", 2)

    outcome = purchase(broken, get_item("mega-hutch"), 1, scripted)

    assert outcome.accepted and outcome.repaired
    assert outcome.price == 1_200
    assert outcome.state.capacity == 12
    assert outcome.state.broken_upgrades == frozenset()
    assert "mega-hutch" not in breakage_candidates(broken)
