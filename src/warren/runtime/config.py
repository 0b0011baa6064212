"""Runtime configuration for the colony engine.

Defaults reproduce the shipped game balance.  Hosts may override individual
values (for scenarios, tests or the CLI ``--config`` flag) through
:meth:`ColonyConfig.from_mapping`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping


@dataclass(slots=True)
class ColonyConfig:
    # Consumption and earnings
    food_per_individual: float = 1.0
    water_per_individual: float = 1.0
    coins_per_individual: float = 2.0
    epidemic_water_penalty: float = 2.0
    time_bonus_period_days: int = 80
    time_bonus_step: float = 0.05
    time_bonus_cap: float = 0.95

    # Breeding
    breeding_chance: float = 0.3
    purified_breeding_multiplier: float = 2.0
    epidemic_breeding_multiplier: float = 0.25
    min_breeding_population: int = 2

    # Events
    event_chance: float = 0.3
    common_rarity_cutoff: float = 0.6
    uncommon_rarity_cutoff: float = 0.9
    fragile_population: int = 4

    # Epidemic
    epidemic_duration_days: int = 30
    infection_fraction_min: float = 0.10
    infection_fraction_max: float = 0.50
    cure_cost_fraction: float = 0.7

    # Breakage
    breakage_chance: float = 0.01
    breakage_min_candidates: int = 3
    repair_multiplier_min: int = 2
    repair_multiplier_max: int = 10

    # Sales
    sale_window_days: int = 40
    sale_price_per_individual: int = 25
    sale_fraction_min: float = 0.10
    sale_fraction_max: float = 0.50

    # Pricing
    price_day_step: int = 10
    price_day_increment: float = 0.01
    surcharge_day_step: int = 20
    surcharge_increment: float = 0.05
    surcharge_cap: float = 2.0
    house_discount_step: int = 5
    house_discount_increment: float = 0.02
    house_discount_cap: float = 0.20
    bulk_discount_small_qty: int = 5
    bulk_discount_small: float = 0.05
    bulk_discount_large_qty: int = 10
    bulk_discount_large: float = 0.10
    max_total_discount: float = 0.8
    shop_discount_cap: float = 0.3

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, Any] | None = None) -> "ColonyConfig":
        """Build a config from defaults plus ``overrides``; unknown keys raise ``KeyError``."""

        cfg = cls()
        if not overrides:
            return cfg
        known = {f.name: f for f in fields(cls)}
        updates: dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known:
                raise KeyError(f"Unknown colony config key: {key!r}")
            default = getattr(cfg, key)
            updates[key] = type(default)(value)
        return replace(cfg, **updates)

    def predation_range(self, event_id: str) -> tuple[float, float]:
        return PREDATION_FRACTIONS[event_id]


# Fraction of the colony each predator takes: uniform in [lo, hi).
PREDATION_FRACTIONS: dict[str, tuple[float, float]] = {
    "fox-attack": (0.01, 0.10),
    "wolf-raid": (0.05, 0.20),
    "bear-rampage": (0.10, 0.35),
}

FOOD_EFFICIENCY = {
    "carrots": 1.0,
    "lettuce": 1.2,
    "pellets": 1.5,
}

DEFAULT_CONFIG = ColonyConfig()


__all__ = ["ColonyConfig", "DEFAULT_CONFIG", "FOOD_EFFICIENCY", "PREDATION_FRACTIONS"]
