from decimal import Decimal
from typing import Iterable, Optional

from ..exceptions import (
    InsufficientStock,
    InvalidRequest,
    InventoryError,
    LotNotFound,
)
from .bases import Aggregate, field
from .lot import SELLABLE_STATES, Lot, LotState
from .order import OrderLine


class Product(Aggregate):
    """A sellable item and the ledger of lots it was bought in.

    Lot quantities only change through ``adjust``; allocation, revert and
    reserve are all expressed as sequences of adjustments.
    """

    sku: str
    unit_price: Decimal
    lots: list[Lot] = field(default_factory=list)
    version_number: int = field(default=0)

    def __post_init__(self):
        if self.unit_price < 0:
            raise InvalidRequest(f"Product {self.sku} price must not be negative")

    def __repr__(self):
        return f"<Product {self.sku}>"

    # Ledger

    def get_lot(self, reference: str) -> Lot:
        try:
            return next(lot for lot in self.lots if lot.reference == reference)
        except StopIteration:
            raise LotNotFound(f"Lot {reference} not found for product {self.sku}")

    def eligible_lots(self, states: Iterable[LotState] = SELLABLE_STATES) -> list[Lot]:
        states = frozenset(states)
        return sorted(lot for lot in self.lots if lot.state in states)

    @property
    def available_quantity(self) -> int:
        return sum(lot.quantity for lot in self.eligible_lots())

    def adjust(self, lot_reference: str, delta: int):
        self.get_lot(lot_reference).adjust(delta)
        self.version_number += 1

    def add_lot(self, lot: Lot):
        if lot.sku != self.sku:
            raise InvalidRequest(f"Lot {lot.reference} belongs to {lot.sku}, not {self.sku}")
        if any(existing.reference == lot.reference for existing in self.lots):
            raise InvalidRequest(f"Lot {lot.reference} already exists")
        self.lots.append(lot)
        self.version_number += 1

    def change_lot_state(self, lot_reference: str, state: LotState):
        self.get_lot(lot_reference).state = state
        self.version_number += 1

    def change_price(self, unit_price: Decimal):
        if unit_price < 0:
            raise InvalidRequest(f"Product {self.sku} price must not be negative")
        self.unit_price = unit_price
        self.version_number += 1

    # Allocation

    def allocate(
        self, order_id: str, quantity: int, unit_price: Optional[Decimal] = None
    ) -> list[OrderLine]:
        if quantity <= 0:
            raise InvalidRequest(f"Requested quantity must be positive (got {quantity})")
        price = self.unit_price if unit_price is None else unit_price
        lines: list[OrderLine] = []
        outstanding = quantity
        for lot in self.eligible_lots():
            if outstanding == 0:
                break
            if lot.quantity == 0:
                continue
            taken = min(lot.quantity, outstanding)
            self.adjust(lot.reference, -taken)
            lines.append(
                OrderLine(
                    order_id=order_id,
                    sku=self.sku,
                    lot_reference=lot.reference,
                    quantity=taken,
                    unit_price=price,
                )
            )
            outstanding -= taken
        if outstanding > 0:
            self.revert(lines)
            raise InsufficientStock(self.sku, quantity, quantity - outstanding)
        return lines

    def revert(self, lines: Iterable[OrderLine]):
        self._apply((line.lot_reference, line.quantity) for line in self._own(lines))

    def reserve(self, lines: Iterable[OrderLine]):
        self._apply((line.lot_reference, -line.quantity) for line in self._own(lines))

    def _own(self, lines: Iterable[OrderLine]) -> list[OrderLine]:
        lines = list(lines)
        for line in lines:
            if line.sku != self.sku:
                raise InvalidRequest(f"Line for {line.sku} cannot be applied to {self.sku}")
            self.get_lot(line.lot_reference)
        return lines

    def _apply(self, adjustments: Iterable[tuple[str, int]]):
        applied: list[tuple[str, int]] = []
        try:
            for reference, delta in adjustments:
                self.adjust(reference, delta)
                applied.append((reference, delta))
        except InventoryError:
            for reference, delta in reversed(applied):
                self.adjust(reference, -delta)
            raise
