from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from warren.state import ColonyState, FoodTier, WaterTier


@dataclass(frozen=True, slots=True)
class ColonyStats:
    """Read-only snapshot the achievement predicates are evaluated against."""

    population: int = 0
    coins: int = 0
    day: int = 1
    total_born: int = 0
    total_coins_earned: int = 0
    houses: int = 1
    food_tier: FoodTier = FoodTier.CARROTS
    water_tier: WaterTier = WaterTier.NORMAL
    owned_upgrades: frozenset[str] = frozenset()
    break_count: int = 0
    repair_count: int = 0
    survival_count: int = 0

    @classmethod
    def from_state(cls, state: ColonyState) -> "ColonyStats":
        return cls(
            population=state.population_size,
            coins=state.coins,
            day=state.day,
            total_born=state.total_born,
            total_coins_earned=state.total_coins_earned,
            houses=state.houses,
            food_tier=state.food_tier,
            water_tier=state.water_tier,
            owned_upgrades=state.owned_upgrades,
            break_count=state.break_count,
            repair_count=state.repair_count,
            survival_count=state.survival_count,
        )


class AchievementCategory:
    RABBITS = "rabbits"
    COINS = "coins"
    DAYS = "days"
    RESOURCES = "resources"
    UPGRADES = "upgrades"


@dataclass(frozen=True, slots=True)
class Achievement:
    achievement_id: str
    name: str
    description: str
    category: str
    requirement: Callable[[ColonyStats], bool]


def _owns(upgrade_id: str) -> Callable[[ColonyStats], bool]:
    return lambda stats: upgrade_id in stats.owned_upgrades


def _upgrade(upgrade_id: str, name: str, description: str) -> Achievement:
    return Achievement(f"upg-{upgrade_id}", name, description, AchievementCategory.UPGRADES, _owns(upgrade_id))


ACHIEVEMENTS: tuple[Achievement, ...] = (
    # Population
    Achievement("first-rabbit", "First Steps", "Welcome your first rabbit",
                AchievementCategory.RABBITS, lambda s: s.population >= 1),
    Achievement("colony-5", "Small Colony", "Grow your colony to 5 rabbits",
                AchievementCategory.RABBITS, lambda s: s.population >= 5),
    Achievement("colony-10", "Growing Family", "Reach 10 rabbits",
                AchievementCategory.RABBITS, lambda s: s.population >= 10),
    Achievement("colony-25", "Rabbit Empire", "Build an empire of 25 rabbits",
                AchievementCategory.RABBITS, lambda s: s.population >= 25),
    Achievement("breeder-100", "Master Breeder", "Birth 100 rabbits total",
                AchievementCategory.RABBITS, lambda s: s.total_born >= 100),
    # Coins
    Achievement("coins-100", "Penny Pincher", "Accumulate 100 coins",
                AchievementCategory.COINS, lambda s: s.coins >= 100),
    Achievement("coins-500", "Small Fortune", "Accumulate 500 coins",
                AchievementCategory.COINS, lambda s: s.coins >= 500),
    Achievement("coins-1000", "Coin Collector", "Accumulate 1,000 coins",
                AchievementCategory.COINS, lambda s: s.coins >= 1000),
    Achievement("earnings-5000", "Tycoon", "Earn 5,000 coins total",
                AchievementCategory.COINS, lambda s: s.total_coins_earned >= 5000),
    # Days
    Achievement("day-7", "First Week", "Survive for 7 days",
                AchievementCategory.DAYS, lambda s: s.day >= 7),
    Achievement("day-30", "One Month Strong", "Survive for 30 days",
                AchievementCategory.DAYS, lambda s: s.day >= 30),
    Achievement("day-50", "Dedicated Farmer", "Survive for 50 days",
                AchievementCategory.DAYS, lambda s: s.day >= 50),
    Achievement("day-100", "Century Club", "Reach day 100",
                AchievementCategory.DAYS, lambda s: s.day >= 100),
    Achievement("day-1000", "Ranch Owner", "Reach day 1000",
                AchievementCategory.DAYS, lambda s: s.day >= 1000),
    # Resources and tiers
    Achievement("house-5", "Real Estate Mogul", "Own 5 rabbit houses",
                AchievementCategory.RESOURCES, lambda s: s.houses >= 5),
    Achievement("lettuce-garden", "Lettuce Garden", "Upgrade to lettuce",
                AchievementCategory.UPGRADES, lambda s: s.food_tier is FoodTier.LETTUCE),
    Achievement("premium-food", "Gourmet Chef", "Upgrade to premium pellets",
                AchievementCategory.UPGRADES, lambda s: s.food_tier is FoodTier.PELLETS),
    Achievement("purified-water", "Water Connoisseur", "Upgrade to purified water",
                AchievementCategory.UPGRADES, lambda s: s.water_tier is WaterTier.PURIFIED),
    # Generic upgrades
    _upgrade("training-grounds", "Training Grounds", "Build training grounds (+25% coins)"),
    _upgrade("bunny-nursery", "Bunny Nursery", "Open a bunny nursery (+25% breeding)"),
    _upgrade("fertilizer-system", "Fertilizer System", "Install fertilizer system (-25% food use)"),
    _upgrade("hydration-station", "Hydration Station", "Install hydration station (-25% water use)"),
    _upgrade("carrot-farm", "Carrot Farm", "Start a carrot farm (+food/day)"),
    _upgrade("deep-well", "Deep Well", "Dig a deep well (+water/day)"),
    _upgrade("solar-panels", "Solar Panels", "Install solar panels (+coins/day)"),
    _upgrade("market-stall", "Market Stall", "Open a market stall (+coins)"),
    _upgrade("logistics-network", "Logistics Network", "Build a logistics network (shop discounts)"),
    _upgrade("purifier-plus", "Purifier Plus", "Enhance your purifier (+breeding)"),
    # Breakage and repair
    Achievement("first-break", "Uh Oh!", "Experience your first upgrade break",
                AchievementCategory.UPGRADES, lambda s: s.break_count >= 1),
    Achievement("first-repair", "Fix-It Bun", "Repair your first broken upgrade",
                AchievementCategory.UPGRADES, lambda s: s.repair_count >= 1),
    Achievement("full-upgrade", "Perfectionist", "Get all upgrades",
                AchievementCategory.UPGRADES,
                lambda s: s.food_tier is FoodTier.PELLETS and s.water_tier is WaterTier.PURIFIED),
    # Events
    Achievement("survive-fever", "Plague Survivor", "Survive a Rabbit Fever outbreak",
                AchievementCategory.DAYS, lambda s: s.survival_count >= 1),
)

_BY_ID = {achievement.achievement_id: achievement for achievement in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> Achievement:
    return _BY_ID[achievement_id]


__all__ = [
    "ACHIEVEMENTS",
    "Achievement",
    "AchievementCategory",
    "ColonyStats",
    "get_achievement",
]
