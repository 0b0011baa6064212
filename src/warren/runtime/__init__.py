"""Colony runtime: the day engine, shop operations and their supporting services."""

from .achievements import apply_unlocks, evaluate_achievements
from .config import DEFAULT_CONFIG, ColonyConfig
from .day_engine import DayOutcome, advance_day
from .epidemic import choose_cure, choose_isolate
from .pricing import price
from .rejections import Rejection, RejectionReason
from .rng_service import RandomSource, RNGConfig, RNGService
from .shop import PurchaseOutcome, SaleOutcome, dismiss_event, purchase, sell_population
from .telemetry import Metrics

__all__ = [
    "ColonyConfig",
    "DEFAULT_CONFIG",
    "DayOutcome",
    "Metrics",
    "PurchaseOutcome",
    "RNGConfig",
    "RNGService",
    "RandomSource",
    "Rejection",
    "RejectionReason",
    "SaleOutcome",
    "advance_day",
    "apply_unlocks",
    "choose_cure",
    "choose_isolate",
    "dismiss_event",
    "evaluate_achievements",
    "price",
    "purchase",
    "sell_population",
]
