from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from ..exceptions import InvalidAdjustment, InvalidRequest
from .bases import Entity, field


class LotState(str, Enum):
    NEW = "new"
    REFURBISHED = "refurbished"
    USED = "used"
    RETURNED = "returned"
    DEFECTIVE = "defective"
    IN_REPAIR = "in_repair"
    IN_REVIEW = "in_review"


# Shared by allocation and every read of "available" stock.
SELLABLE_STATES = frozenset({LotState.NEW, LotState.REFURBISHED})


class Lot(Entity):
    reference: str
    sku: str
    unit_cost: Decimal
    quantity: int
    acquired_on: date
    state: LotState = field(default=LotState.NEW)

    def __post_init__(self):
        if self.quantity < 0:
            raise InvalidRequest(f"Lot {self.reference} quantity must not be negative")
        if self.unit_cost < 0:
            raise InvalidRequest(f"Lot {self.reference} cost must not be negative")

    def __repr__(self):
        return f"<Lot {self.reference}>"

    def __eq__(self, other: Any):
        if not isinstance(other, Lot):
            return False
        return other.reference == self.reference

    def __hash__(self):
        return hash(self.reference)

    def __lt__(self, other: Any):
        if not isinstance(other, type(self)):
            raise TypeError(f"{other} is not {type(self).__name__} instance")
        return (self.acquired_on, self.reference) < (other.acquired_on, other.reference)

    @property
    def is_sellable(self) -> bool:
        return self.state in SELLABLE_STATES

    def adjust(self, delta: int):
        if self.quantity + delta < 0:
            raise InvalidAdjustment(self.reference, self.quantity, delta)
        self.quantity += delta
