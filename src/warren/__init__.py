"""Warren colony simulation package public façade."""

from .admin_log import ColonyEventLog, ColonyLogEvent
from .data.shop import get_item
from .runtime.achievements import evaluate_achievements
from .runtime.config import DEFAULT_CONFIG, ColonyConfig
from .runtime.day_engine import DayOutcome, advance_day
from .runtime.epidemic import choose_cure, choose_isolate
from .runtime.pricing import price
from .runtime.rejections import Rejection, RejectionReason
from .runtime.rng_service import RandomSource, RNGService
from .runtime.shop import PurchaseOutcome, SaleOutcome, dismiss_event, purchase, sell_population
from .session import ColonySession
from .state import Breed, ColonyState, FoodTier, Individual, RunRecord, WaterTier, new_game

__all__ = [
    "Breed",
    "ColonyConfig",
    "ColonyEventLog",
    "ColonyLogEvent",
    "ColonySession",
    "ColonyState",
    "DEFAULT_CONFIG",
    "DayOutcome",
    "FoodTier",
    "Individual",
    "PurchaseOutcome",
    "RNGService",
    "RandomSource",
    "Rejection",
    "RejectionReason",
    "RunRecord",
    "SaleOutcome",
    "WaterTier",
    "advance_day",
    "choose_cure",
    "choose_isolate",
    "dismiss_event",
    "evaluate_achievements",
    "get_item",
    "new_game",
    "price",
    "purchase",
    "sell_population",
]
