from __future__ import annotations

from dataclasses import dataclass

from warren.state import Breed, FoodTier, WaterTier


class ItemType:
    RABBIT = "rabbit"
    FOOD = "food"
    WATER = "water"
    HOUSE = "house"
    UPGRADE = "upgrade"


DISCOUNTABLE_TYPES = frozenset({ItemType.FOOD, ItemType.WATER, ItemType.HOUSE})


@dataclass(frozen=True, slots=True)
class ItemEffect:
    rabbits: int = 0
    food: int = 0
    water: int = 0
    houses: int = 0
    food_tier: FoodTier | None = None
    water_tier: WaterTier | None = None
    # Generic upgrade accumulators; multipliers of 1.0 and bonuses of 0 are no-ops.
    coin_multiplier: float = 1.0
    breeding_bonus_multiplier: float = 1.0
    food_consumption_multiplier: float = 1.0
    water_consumption_multiplier: float = 1.0
    capacity_bonus_per_house: int = 0
    passive_coins_per_day: int = 0
    passive_food_per_day: int = 0
    passive_water_per_day: int = 0
    shop_discount_bonus: float = 0.0


@dataclass(frozen=True, slots=True)
class Prerequisite:
    """Declarative gate checked before a purchase is accepted."""

    min_day: int = 0
    min_houses: int = 0
    min_food_tier: FoodTier | None = None
    water_tier: WaterTier | None = None
    requires_upgrades: tuple[str, ...] = ()
    message: str = ""


@dataclass(frozen=True, slots=True)
class ShopItem:
    item_id: str
    name: str
    description: str
    cost: int
    item_type: str
    effect: ItemEffect = ItemEffect()
    breed: Breed | None = None
    prerequisite: Prerequisite | None = None
    # False: a breakdown only flags the item; its effect and ownership stay.
    reversible: bool = True

    @property
    def is_upgrade(self) -> bool:
        return self.item_type == ItemType.UPGRADE

    @property
    def is_tier_upgrade(self) -> bool:
        return self.is_upgrade and (self.effect.food_tier is not None or self.effect.water_tier is not None)

    @property
    def is_generic_upgrade(self) -> bool:
        return self.is_upgrade and not self.is_tier_upgrade

    @property
    def is_discountable(self) -> bool:
        return self.item_type in DISCOUNTABLE_TYPES


def _item(
    item_id: str,
    name: str,
    description: str,
    *,
    cost: int,
    item_type: str,
    breed: Breed | None = None,
    prerequisite: Prerequisite | None = None,
    reversible: bool = True,
    **effect: object,
) -> ShopItem:
    return ShopItem(
        item_id=item_id,
        name=name,
        description=description,
        cost=cost,
        item_type=item_type,
        effect=ItemEffect(**effect),
        breed=breed,
        prerequisite=prerequisite,
        reversible=reversible,
    )


_NEEDS_LETTUCE = Prerequisite(min_food_tier=FoodTier.LETTUCE, message="Requires Lettuce Garden first.")
_NEEDS_PURIFIED = Prerequisite(water_tier=WaterTier.PURIFIED, message="Requires Water Filter first.")

LETTUCE_UPGRADE_ID = "lettuce-upgrade"
PELLETS_UPGRADE_ID = "pellets-upgrade"
PURIFIED_WATER_ID = "purified-water"

SHOP_ITEMS: tuple[ShopItem, ...] = (
    # Food
    _item("carrot-bundle", "Carrot Bundle", "10 portions of food.",
          cost=8, item_type=ItemType.FOOD, food=10),
    _item("hay-bale", "Hay Bale", "50 portions of food.",
          cost=35, item_type=ItemType.FOOD, food=50),
    # Water
    _item("water-bucket", "Water Bucket", "10 portions of water.",
          cost=6, item_type=ItemType.WATER, water=10),
    _item("water-barrel", "Water Barrel", "50 portions of water.",
          cost=25, item_type=ItemType.WATER, water=50),
    # Housing
    _item("rabbit-house", "Rabbit House", "Room for four more rabbits.",
          cost=100, item_type=ItemType.HOUSE, houses=1),
    # Rabbits
    _item("common-rabbit", "Common Rabbit", "A reliable, steady earner.",
          cost=30, item_type=ItemType.RABBIT, rabbits=1, breed=Breed.COMMON),
    _item("angora-rabbit", "Angora Rabbit", "Produces 50% more coins.",
          cost=120, item_type=ItemType.RABBIT, rabbits=1, breed=Breed.RARE),
    _item("golden-rabbit", "Golden Rabbit", "Produces 150% more coins.",
          cost=400, item_type=ItemType.RABBIT, rabbits=1, breed=Breed.LEGENDARY),
    # Tier upgrades
    _item(LETTUCE_UPGRADE_ID, "Lettuce Garden", "Better food: +20% coins.",
          cost=150, item_type=ItemType.UPGRADE, food_tier=FoodTier.LETTUCE),
    _item(PELLETS_UPGRADE_ID, "Premium Pellets", "Best food: +50% coins.",
          cost=400, item_type=ItemType.UPGRADE, food_tier=FoodTier.PELLETS),
    _item(PURIFIED_WATER_ID, "Water Filter", "Purified water doubles breeding.",
          cost=200, item_type=ItemType.UPGRADE, water_tier=WaterTier.PURIFIED),
    # Generic upgrades
    _item("training-grounds", "Training Grounds", "+25% coins.",
          cost=500, item_type=ItemType.UPGRADE, prerequisite=_NEEDS_LETTUCE, coin_multiplier=1.25),
    _item("bunny-nursery", "Bunny Nursery", "+25% breeding.",
          cost=450, item_type=ItemType.UPGRADE, prerequisite=_NEEDS_PURIFIED, breeding_bonus_multiplier=1.25),
    _item("mega-hutch", "Mega Hutch", "Every house holds two more rabbits.",
          cost=600, item_type=ItemType.UPGRADE, reversible=False,
          prerequisite=Prerequisite(min_houses=2, message="Requires at least 2 houses."),
          capacity_bonus_per_house=2),
    _item("fertilizer-system", "Fertilizer System", "-25% food use.",
          cost=350, item_type=ItemType.UPGRADE, prerequisite=_NEEDS_LETTUCE, food_consumption_multiplier=0.75),
    _item("hydration-station", "Hydration Station", "-25% water use.",
          cost=350, item_type=ItemType.UPGRADE, prerequisite=_NEEDS_PURIFIED, water_consumption_multiplier=0.75),
    _item("carrot-farm", "Carrot Farm", "+10 food per day.",
          cost=300, item_type=ItemType.UPGRADE,
          prerequisite=Prerequisite(min_day=10, message="Unlocks at Day 10."), passive_food_per_day=10),
    _item("deep-well", "Deep Well", "+10 water per day.",
          cost=300, item_type=ItemType.UPGRADE,
          prerequisite=Prerequisite(min_day=10, message="Unlocks at Day 10."), passive_water_per_day=10),
    _item("solar-panels", "Solar Panels", "+10 coins per day.",
          cost=800, item_type=ItemType.UPGRADE,
          prerequisite=Prerequisite(min_day=20, message="Unlocks at Day 20."), passive_coins_per_day=10),
    _item("market-stall", "Market Stall", "+15% coins.",
          cost=700, item_type=ItemType.UPGRADE,
          prerequisite=Prerequisite(requires_upgrades=("training-grounds",), message="Requires Training Grounds first."),
          coin_multiplier=1.15),
    _item("logistics-network", "Logistics Network", "10% off food, water and housing.",
          cost=1000, item_type=ItemType.UPGRADE,
          prerequisite=Prerequisite(min_day=15, min_houses=3, message="Requires Day 15 and 3+ houses."),
          shop_discount_bonus=0.10),
    _item("purifier-plus", "Purifier Plus", "+25% breeding.",
          cost=650, item_type=ItemType.UPGRADE, prerequisite=_NEEDS_PURIFIED, breeding_bonus_multiplier=1.25),
)

_BY_ID = {item.item_id: item for item in SHOP_ITEMS}


def get_item(item_id: str) -> ShopItem:
    return _BY_ID[item_id]


__all__ = [
    "DISCOUNTABLE_TYPES",
    "ItemEffect",
    "ItemType",
    "LETTUCE_UPGRADE_ID",
    "PELLETS_UPGRADE_ID",
    "PURIFIED_WATER_ID",
    "Prerequisite",
    "SHOP_ITEMS",
    "ShopItem",
    "get_item",
]
