"""Recoverable rejections returned by purchase and sale operations.

Rejections are values, not exceptions: the engine never aborts an operation
because of them and the caller decides whether to show the message.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RejectionReason(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    ALREADY_OWNED = "already_owned"
    PREREQUISITE_UNMET = "prerequisite_unmet"
    NOT_SALE_WINDOW = "not_sale_window"
    ALREADY_SOLD_TODAY = "already_sold_today"
    EMPTY_POPULATION = "empty_population"


@dataclass(frozen=True, slots=True)
class Rejection:
    reason: RejectionReason
    message: str = ""

    def __str__(self) -> str:
        return self.message or self.reason.value


__all__ = ["Rejection", "RejectionReason"]
